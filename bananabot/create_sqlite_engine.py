import pathlib

from sqlalchemy.ext.asyncio import create_async_engine

from bananabot.load_secrets import database_url

file_path = pathlib.Path(__file__).parents[1]
file_path /= "./bananabot.sqlite3"
sqlite_url = database_url or f"sqlite+aiosqlite:///{file_path}"


engine = create_async_engine(url=sqlite_url, echo=False)
