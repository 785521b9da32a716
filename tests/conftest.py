import pytest

from textreg.core.corpus import Document, make_corpus

from .fakes import make_docs


@pytest.fixture
def corpus():
    return make_docs(24)


@pytest.fixture
def scenario_corpus():
    years = [1900, 1950, 2000, 2020]
    return make_corpus(
        Document(id=i, text=f"year{y} decision text", target=float(y)) for i, y in enumerate(years)
    )
