from .cli import app

app(prog_name="iam-role-cloner")
