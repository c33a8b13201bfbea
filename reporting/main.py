"""
Sales Reporting API

ASGI entry point: ``uvicorn reporting.main:app``.
"""

from reporting.serving.api import create_app

app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
