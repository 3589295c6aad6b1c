"""Allow ``python -m accord``."""

from accord.frontends.cli.main import main

if __name__ == "__main__":
    main()
