"""School directory lookups used by the intake conversation."""
import logging
from typing import Any, Dict, List, Optional

from speakfree.shared.database import BaseRepository, ConnectionManager
from speakfree.shared.models import School

logger = logging.getLogger(__name__)


class SchoolDirectory(BaseRepository[School]):
    """Read-only access to the schools table."""

    columns = ("id", "school_code", "name")

    def __init__(self, connection_manager: ConnectionManager):
        super().__init__(connection_manager, "schools")

    def _row_to_entity(self, row: tuple) -> School:
        return School(id=row[0], school_code=row[1], name=row[2])

    def _entity_to_params(self, entity: School) -> Dict[str, Any]:
        return {
            "id": entity.id,
            "school_code": entity.school_code,
            "name": entity.name,
        }

    def find_by_code(self, code: str) -> Optional[School]:
        row = self._fetch_one(
            f"SELECT {self._select_list} FROM schools WHERE school_code = %s",
            (code.upper(),),
        )
        return self._row_to_entity(row) if row else None

    def search_by_name(self, name: str, limit: int = 5) -> List[School]:
        """Schools whose name contains ``name``, case-insensitively."""
        rows = self._fetch_all(
            f"SELECT {self._select_list} FROM schools "
            "WHERE name ILIKE %s ORDER BY name LIMIT %s",
            (f"%{name}%", limit),
        )
        logger.info(
            "SCHOOL_NAME_SEARCH",
            extra={"results": len(rows), "limit": limit}
        )
        return [self._row_to_entity(row) for row in rows]
