"""
demosnap CLI Entry Point

Allows running the package as a module: python -m demosnap
"""


def main():
    """Main entry point for the CLI."""
    from demosnap.cli import app

    app()


if __name__ == "__main__":
    main()
