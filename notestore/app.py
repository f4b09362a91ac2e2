# module notestore.app
from notestore.app_setup.factory import create_app

# App globale
app = create_app()
