from .processor import run_cli

run_cli()
