# /run.py
import os
from app import create_app

# APP_CONFIG picks config.<Name>Config; defaults to development
app = create_app(os.getenv("APP_CONFIG", "Development"))

if __name__ == "__main__":
    app.run(debug=app.config.get("DEBUG", False))
