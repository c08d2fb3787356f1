# =======================================================================================
# keycustody/__main__.py - python -m keycustody
# =======================================================================================
from .main import run

run()
