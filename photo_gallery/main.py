import argparse
import logging
import sys
from pathlib import Path

from . import config
from .config import GallerySettings
from .core import GalleryBuilder
from .exceptions import GalleryError
from .rendering import DEFAULT_TEMPLATE


def setup_logging(verbose: bool):
    """Sets up console logging."""
    log_level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)
    logging.getLogger("PIL").setLevel(logging.WARNING)


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Photo Gallery: build a static HTML gallery from a directory of JPEG images")

    p.add_argument("--src", type=Path, default=None, help="Directory with source jpeg images")
    p.add_argument("--orig", type=Path, default=config.DEFAULT_FULLSIZE_DIR,
                   help="Directory to store full size image copies (hardlinked from the source if possible)")
    p.add_argument("--thumb", type=Path, default=config.DEFAULT_THUMBS_DIR,
                   help="Directory to store thumbnails")
    p.add_argument("--html", type=Path, default=config.DEFAULT_HTML, help="Generated gallery html file")
    p.add_argument("--template", type=Path, default=None, help="Template file to use instead of default")
    p.add_argument("--name", default=None, help="Optional gallery name")
    p.add_argument("--cache", type=Path, default=None,
                   help="Optional metadata cache file, enables incremental gallery update")
    p.add_argument("--phash", action="store_true",
                   help="Use perceptual hash to detect duplicates on add (slow)")
    p.add_argument("--workers", type=int, default=None,
                   help="Number of parallel workers (default: number of CPUs)")
    p.add_argument("--dump-template", action="store_true", help="Dump default template to stdout and exit")
    p.add_argument("-q", "--quiet", action="store_true", help="Disable the progress bar")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    if args.dump_template:
        print(DEFAULT_TEMPLATE)
        return 0

    setup_logging(args.verbose)

    settings = GallerySettings(
        src_dir=args.src,
        fullsize_dir=args.orig,
        thumbs_dir=args.thumb,
        html=args.html,
        template=args.template,
        name=args.name,
        cache_path=args.cache,
        use_phash=args.phash,
        workers=args.workers,
        quiet=args.quiet,
    )

    try:
        GalleryBuilder(settings).build()
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return 130
    except (GalleryError, OSError) as e:
        logging.error(str(e))
        return 1
    except Exception:
        logging.exception("Fatal error while building gallery.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
