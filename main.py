# ASGI entry point at the project root
# Re-exports the application from the app package

from app.main import app

# Run from the project root: uvicorn main:app --host 0.0.0.0 --port 8000
