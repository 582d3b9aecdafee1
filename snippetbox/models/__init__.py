"""ORM models. Importing a model module registers its table on `Base.metadata`."""
