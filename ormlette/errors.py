"""Exceptions raised by ormlette itself.

Database driver errors are never wrapped: they reach the caller unchanged.
"""


class InvalidRelation(ValueError):
    """Raised when `with_relations()` is given a name that is not a callable member."""

    def __init__(self, relation: str, model_name: str):
        self.relation = relation
        self.model_name = model_name
        super().__init__(f'The relation "{relation}" doesn\'t exist in "{model_name}"')
