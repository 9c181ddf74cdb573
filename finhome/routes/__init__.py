"""API routers. Each module exposes a ``router`` mounted by :mod:`finhome.main`."""
