from .interfaces.cli import app

app(prog_name="ghcl")
