"""
HTML output for a finished gallery.

Templates use bottle's SimpleTemplate syntax and are rendered with two
variables: `name` (str) and `images` (list of ImageRecord, newest first).
"""
import logging
from pathlib import Path
from typing import Optional

from bottle import SimpleTemplate

from .catalog.cache import GalleryCache

DEFAULT_TEMPLATE = """<!DOCTYPE html><head><title>{{name}}</title>
<meta charset="utf-8">
<style>
	* {box-sizing: border-box; border: none; font-family: ui-sans-serif, sans-serif;}
	html {background-color: whitesmoke; padding:0;margin:0;}
	body {padding:0;margin:0;}
	header, footer {line-height: 1.7; padding: 5px; background-color: black; color: white;}
	h1 {font-style: bold; font-size:x-large; margin:0;padding:0;}
	footer {text-align: center;}
	.gallery {
		display: grid;
		grid-template-columns: repeat(auto-fit, minmax(300px, 1fr));
		grid-gap: 5px;
		grid-auto-flow: row dense;
		padding: 5px;
		margin: auto;
	}
	.gallery .portrait {
		grid-row-end: span 2;
	}
	.gallery img {
		display: block;
		object-fit: cover;
		width: 100%;
		height: 100%;
	}
	figure {
		padding: 0;
		margin: 0;
	}
	.lightbox {
		display: none;
	}
	.lightbox:target {
		z-index: 999;
		outline: none;
		display: block;
		position: fixed;
		top: 0;
		left: 0;
		width: 100%;
		height: 100vh;
		background-color: rgba(0, 0, 0, 0.9);
	}
	.lightbox:target img {
		object-fit: scale-down;
		width: 100%;
		height: 100%;
	}
</style>
</head>
<body>
<header><h1>{{name}}</h1></header>
<main class="gallery">
% for image in images:
	<figure{{!' class="portrait"' if image.portrait else ''}}><a href="#{{image.id}}">
	<img loading="lazy" src="{{image.thumbnail}}">
	</a>
	</figure>
% end
</main>
<div class="fullsize-images">
% for image in images:
	<figure class="lightbox" id="{{image.id}}">
		<a href="#back">
		<img loading="lazy" src="{{image.original}}">
		</a>
	</figure>
% end
</div>
<footer>&copy; all rights reserved</footer>
</body>
"""


class GalleryRenderer:
    def __init__(self, source: str = DEFAULT_TEMPLATE):
        self.template = SimpleTemplate(source=source)
        # compile now so a broken template fails before any image work
        self.template.co

    @classmethod
    def from_file(cls, path: Optional[Path]) -> "GalleryRenderer":
        if path is None:
            return cls()
        return cls(Path(path).read_text(encoding="utf-8"))

    def render(self, cache: GalleryCache) -> str:
        return self.template.render(name=cache.name, images=cache.images)

    def write(self, cache: GalleryCache, html: Path):
        html = Path(html)
        html.parent.mkdir(parents=True, exist_ok=True)
        html.write_text(self.render(cache), encoding="utf-8")
        logging.info(f"Gallery written to {html}")
