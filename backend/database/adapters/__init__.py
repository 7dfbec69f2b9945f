# Concrete adapters are imported lazily by database.factory so that only the
# selected backend's driver has to be installed.
ADAPTER_CLASSES = {
    "mongodb": "database.adapters.mongodb:MongoDBAdapter",
    "postgresql": "database.adapters.postgresql:PostgreSQLAdapter",
    "mysql": "database.adapters.mysql:MySQLAdapter",
    "sqlite": "database.adapters.sqlite:SQLiteAdapter",
    "turso": "database.adapters.turso:TursoAdapter",
}
