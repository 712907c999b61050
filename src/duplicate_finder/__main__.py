"""Allow running as ``python -m duplicate_finder``."""

from duplicate_finder.cli import main

if __name__ == "__main__":
    main()
