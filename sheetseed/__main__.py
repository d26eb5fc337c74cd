from sheetseed.cli import app

app(prog_name="sheetseed")
