"""Track GitHub users and their repository languages in Postgres.

Access is exposed through an HTTP API, an argparse CLI, and a natural-language front end that maps
free-form text (or transcribed voice) onto the same CRUD commands.
"""

__version__ = "1.0.0"
