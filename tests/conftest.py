import pytest
from sqlalchemy import create_engine

from utils.revenue_tracker.queries import RevenueQueries
from utils.revenue_tracker.tables import metadata


@pytest.fixture()
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'revenue.db'}")
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def queries(engine):
    # Small fetch pages so batched reads loop more than once
    return RevenueQueries(engine=engine, page_size=2)


@pytest.fixture()
def empty_queries(tmp_path):
    """Queries against a database with no tables at all"""
    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    yield RevenueQueries(engine=engine, page_size=2)
    engine.dispose()
