"""Allow ``python -m fileseal``."""

from fileseal.cli import main

if __name__ == "__main__":
    main()
