"""
Console front-end.

Components:
- bootstrap.py: ConsoleState + composition root
- commands.py: slash-command registry over ThingsReader
- console.py: REPL and one-shot command runner
- main.py: `things-bridge` entry point
"""
