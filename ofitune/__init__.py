"""Algorithm and protocol selection for multi-node collective operations, by region maps or a cost model."""

__version__ = "0.1.0"
__all__ = [
    "mathutil",
    "params",
    "tuner_common",
    "model",
    "geometry",
    "region_tables_p5en",
    "region_tables_p5",
    "regions",
    "mr_key",
    "tuner",
]