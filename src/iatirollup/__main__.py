# src/iatirollup/__main__.py
from iatirollup.app import run

run()
