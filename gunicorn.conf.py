# gunicorn.conf.py
# Gunicorn sends its logs to stdout/stderr; the JSON formatting is handled by
# the application itself.
#
#   gunicorn -c gunicorn.conf.py reelnotes.main:app

bind = "0.0.0.0:8000"
workers = 2
worker_class = "uvicorn.workers.UvicornWorker"

accesslog = "-"
errorlog = "-"

forwarded_allow_ips = "*"
