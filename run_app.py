from ip_helper.cli import app


def main() -> None:
    """Run the IP helper fronts from a source checkout, e.g. `python run_app.py --port 8000`."""
    app()


if __name__ == "__main__":
    main()
