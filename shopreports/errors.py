class ShopReportsError(Exception):
    pass


class ConstraintViolation(ShopReportsError):
    """A write broke a non-null, uniqueness, foreign-key or check rule.

    ``rule`` names the broken rule as ``table.column.kind``,
    e.g. ``products.price.check``.
    """

    def __init__(self, rule: str, message: str = None):
        self.rule = rule
        self.message = message or f"Constraint violated: {rule}"
        super().__init__(self.message)


class NotFound(ShopReportsError):
    def __init__(self, entity_kind: str, entity_id: int):
        self.entity_kind = entity_kind
        self.entity_id = entity_id
        super().__init__(f"{entity_kind} with ID {entity_id} not found")
