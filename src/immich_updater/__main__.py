"""Entry point for ``python -m immich_updater``."""

from immich_updater.main import run

if __name__ == "__main__":
    run()
