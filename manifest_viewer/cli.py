import argparse
import logging
import signal
import sys
import time

from manifest_viewer.config_watch import ConfigWatcher
from manifest_viewer.gallery import Gallery
from manifest_viewer.loader import ImageLoader
from manifest_viewer.reconcile import Reconciler
from manifest_viewer.scheduler import PollScheduler
from manifest_viewer.settings import CONFIG_FILE_PATH, ConfigError, load_settings
from manifest_viewer.state import ConfigState

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(log_file=None, verbose=False):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format=LOG_FORMAT,
                        handlers=handlers,
                        force=True)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="manifest-viewer",
        description="Keep a set of displayed images in sync with a remote list of image URLs.",
    )
    parser.add_argument("--config", default=CONFIG_FILE_PATH,
                        help=f"INI configuration file (default: {CONFIG_FILE_PATH}).")
    parser.add_argument("--url", default=None,
                        help="Manifest URL to poll; overrides manifest_url from the configuration file.")
    parser.add_argument("--headless", action="store_true",
                        help="Load images without opening a window (logging only).")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def _interrupt(signum, frame):
    raise KeyboardInterrupt


def main(argv=None):
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        logger.error(f"Critical: {e}")
        return 1
    if settings['log_file']:
        try:
            setup_logging(settings['log_file'], verbose=args.verbose)
        except OSError as e:
            logger.error(f"Critical: cannot open log file {settings['log_file']}: {e}")
            return 1

    state = ConfigState(url=args.url or settings['manifest_url'])
    gallery = Gallery()
    loader = ImageLoader(
        gallery,
        timeout=settings['image_timeout_s'],
        max_size=(settings['max_image_width'], settings['max_image_height']),
    )
    viewer = None
    if not args.headless:
        # pygame is only imported when a window is wanted
        from manifest_viewer.viewer import PygameViewer
        viewer = PygameViewer(gallery, settings['window_width'], settings['window_height'])

    scheduler = PollScheduler(
        state,
        Reconciler(gallery, loader),
        poll_interval_ms=settings['poll_interval_ms'],
        fetch_timeout_ms=settings['fetch_timeout_ms'],
        on_status=viewer.set_status if viewer else None,
    )
    watcher = ConfigWatcher(args.config, state, settings['config_check_interval_s'])
    watcher.prime()
    watcher.start()

    signal.signal(signal.SIGTERM, _interrupt)
    scheduler.start()
    try:
        if viewer is not None:
            viewer.run()
        else:
            while True:
                time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received. Shutting down.")
    finally:
        watcher.stop()
        # a reconcile in progress must finish before the images are closed
        scheduler.stop(wait=True)
        gallery.close_all()
        loader.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
