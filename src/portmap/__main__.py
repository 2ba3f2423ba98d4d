from portmap.cli.main import run

run()
