"""
Gunicorn configuration.

Run with: gunicorn -c gunicorn.conf.py run:app

Ledger writes are serialized per user inside a worker and by optimistic
versioning across workers, so any worker count is safe.
"""
import os

bind = f"0.0.0.0:{os.getenv('PORT', '8080')}"

workers = int(os.getenv('GUNICORN_WORKERS', '2'))
threads = int(os.getenv('GUNICORN_THREADS', '4'))
worker_class = 'gthread'
timeout = 60
keepalive = 5

# Logging
accesslog = '-'  # stdout
errorlog = '-'   # stderr
loglevel = os.getenv('LOG_LEVEL', 'info')
capture_output = True

proc_name = 'harvest-loyalty'

preload_app = True
graceful_timeout = 30


def on_starting(server):
    print("[Gunicorn] Starting Harvest loyalty engine...")


def on_exit(server):
    print("[Gunicorn] Harvest loyalty engine shutting down...")
