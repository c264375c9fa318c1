# Overview: WSGI entrypoint; builds the Flask app for servers and the flask CLI.

from storeledger import create_app

app = create_app()
