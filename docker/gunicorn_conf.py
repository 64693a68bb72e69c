import os

bind = f"0.0.0.0:{os.getenv('PORT','8000')}"
# Narration sessions live in process memory; more than one worker splits them.
workers = int(os.getenv("WEB_CONCURRENCY", "1")) or 1
worker_class = "uvicorn.workers.UvicornWorker"
# Image fan-out waits on every recipe's image call.
timeout = int(os.getenv("TIMEOUT", "120"))
keepalive = 5
graceful_timeout = 30
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
wsgi_app = "fridgechef.main:create_app()"
