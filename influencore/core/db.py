from fastapi import Request
from sqlmodel import SQLModel, Session, create_engine

def build_engine(url: str, **kwargs):
    """create an engine; sqlite connections are shared with the runner tasks"""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, **kwargs)

def init_db(engine):
    # register table models on the metadata
    from influencore import models  # noqa: F401
    SQLModel.metadata.create_all(engine)

def get_session(request: Request):
    """fastapi dependency bound to the engine of the running app context"""
    with Session(request.app.state.context.engine) as session:
        yield session
