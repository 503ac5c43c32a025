# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
#   repo_root/           <- Directorio de trabajo
#   ├── wsgi.py          <- Este archivo
#   ├── pyproject.toml
#   └── storefront/      <- Paquete Python
#
# Uso:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
# ==============================================================================

from storefront.main import app

if __name__ == '__main__':
    app.run(debug=True, host='127.0.0.1', port=5000)
