"""MySQL database adapter."""

from typing import Any, Dict, Optional
from urllib.parse import quote_plus

from sqlfixture.config.models import DatabaseConfig, ConnectionPoolConfig
from sqlfixture.db.base import BaseAdapter
from sqlfixture.exceptions import DatabaseError


class MySQLAdapter(BaseAdapter):
    """MySQL database adapter."""

    def __init__(
        self,
        config: DatabaseConfig,
        pool_config: Optional[ConnectionPoolConfig] = None,
    ) -> None:
        """Initialize MySQL adapter."""
        super().__init__(config, pool_config)

        if self.config.port is None:
            self.config.port = 3306

    def get_driver_name(self) -> str:
        """Get the driver name for MySQL."""
        return "pymysql"

    def build_connection_string(self) -> str:
        """Build MySQL connection string.

        Raises:
            DatabaseError: If required configuration is missing.
        """
        if not all([self.config.host, self.config.database, self.config.username, self.config.password]):
            raise DatabaseError("MySQL requires host, database, username, and password")

        password_encoded = quote_plus(self.config.password)

        connection_string = (
            f"mysql+pymysql://{self.config.username}:{password_encoded}@"
            f"{self.config.host}:{self.config.port}/{self.config.database}"
        )

        charset = self.config.options.get('charset', 'utf8mb4')
        return f"{connection_string}?charset={charset}"

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get MySQL-specific engine options."""
        return {
            'connect_args': {
                'connect_timeout': self.config.options.get('connect_timeout', 10),
            }
        }
