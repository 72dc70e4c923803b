"""Allow ``python -m webhook_certgen``."""

from webhook_certgen.cli.main import app

if __name__ == "__main__":
    app()
