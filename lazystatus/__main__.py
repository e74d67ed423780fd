"""Module entrypoint for ``python -m lazystatus``."""

from .cli import main


if __name__ == "__main__":
    main()
