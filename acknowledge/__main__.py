from acknowledge.cli import app

app()
