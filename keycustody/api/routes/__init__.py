# =======================================================================================
# keycustody/api/routes/__init__.py - API Routers
# =======================================================================================
