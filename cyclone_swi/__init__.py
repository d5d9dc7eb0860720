from cyclone_swi.etl.baseetl import BaseETL
from cyclone_swi.etl.indexetl import IndexETL

__all__ = ["BaseETL", "IndexETL"]
