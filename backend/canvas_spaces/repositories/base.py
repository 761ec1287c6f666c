from typing import Generic, TypeVar, Type, Optional, List, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from canvas_spaces.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    기본 Repository 클래스

    커밋하지 않는다. 트랜잭션 경계는 호출하는 서비스(작업 단위)가 소유한다.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def create(self, **kwargs) -> ModelType:
        """새 레코드 생성 (flush 까지만 수행)"""
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        return instance

    async def get(self, id: Any) -> Optional[ModelType]:
        """ID로 레코드 조회"""
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def delete(self, id: Any) -> bool:
        """레코드 삭제"""
        result = await self.session.execute(
            delete(self.model).where(self.model.id == id)
        )
        return result.rowcount > 0

    async def delete_many(self, ids: List[Any]) -> int:
        """여러 레코드 일괄 삭제"""
        if not ids:
            return 0
        result = await self.session.execute(
            delete(self.model).where(self.model.id.in_(ids))
        )
        return result.rowcount

    async def count(self, **filters) -> int:
        """레코드 개수 조회"""
        query = select(func.count()).select_from(self.model)

        for key, value in filters.items():
            if hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)

        result = await self.session.execute(query)
        return result.scalar_one()
