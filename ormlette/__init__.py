"""ormlette: a small asynchronous ORM built on Pydantic and parameterized SQL."""

from .model import Model, relation
from .query_builder import QueryBuilder
from .connection import connect, get_connection
from .errors import InvalidRelation
from .types import Where, WhereIn, QueryData, Fragment
