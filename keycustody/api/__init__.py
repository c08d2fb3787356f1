# =======================================================================================
# keycustody/api/__init__.py - API Package
# =======================================================================================
