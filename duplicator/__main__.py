"""Allow running the package with ``python -m duplicator``."""

from .cli import main

if __name__ == "__main__":
    main()
