"""Module entrypoint for ``python -m trafficeval``."""

from trafficeval.cli import main

if __name__ == "__main__":
    main()
