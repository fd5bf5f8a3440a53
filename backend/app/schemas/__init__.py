"""
Pydantic 模型（API schemas）
"""
from backend.app.schemas.material import (
    Material,
    MaterialCreate,
    MaterialUpdate,
    MaterialBatchRequest,
)
from backend.app.schemas.source import (
    CollectSource,
    CollectSourceCreate,
    CollectSourceUpdate,
)
from backend.app.schemas.collection import (
    CollectResult,
    CollectBatch,
    CollectHistory,
    CollectStats,
    CollectExecuteRequest,
    CollectOperationResult,
    ResultSelectionUpdate,
    ResultIdsRequest,
    AddToMaterialsRequest,
)

__all__ = [
    "Material",
    "MaterialCreate",
    "MaterialUpdate",
    "MaterialBatchRequest",
    "CollectSource",
    "CollectSourceCreate",
    "CollectSourceUpdate",
    "CollectResult",
    "CollectBatch",
    "CollectHistory",
    "CollectStats",
    "CollectExecuteRequest",
    "CollectOperationResult",
    "ResultSelectionUpdate",
    "ResultIdsRequest",
    "AddToMaterialsRequest",
]
