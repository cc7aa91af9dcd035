from pairlink.cli import run

run()
