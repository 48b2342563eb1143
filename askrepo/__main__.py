"""Module entrypoint for ``python -m askrepo``."""

from .cli import main


if __name__ == "__main__":
    main()
