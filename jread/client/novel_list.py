"""
小说列表缓存

会话内只拉取一次的小说列表，首页、搜索页和各个交互页共用。
列表只做整体替换，不原地修改元素。
"""
from enum import Enum
from typing import Callable, Iterable, List, Optional

from jread.client.api import ApiClient
from jread.models.novel import NovelStatus
from jread.schemas.novel import NovelResponse

ALL_GENRES = "All"


class SortKey(str, Enum):
    LATEST = "latest"
    CREATED_AT = "createdAt"
    RATING = "rating"
    VIEWS = "views"


def _created_at(novel: NovelResponse) -> float:
    return novel.created_at.timestamp() if novel.created_at else 0.0


_SORT_FIELDS = {
    SortKey.LATEST: _created_at,
    SortKey.CREATED_AT: _created_at,
    SortKey.RATING: lambda novel: novel.rating,
    SortKey.VIEWS: lambda novel: novel.views,
}


def filter_and_sort(
    novels: Iterable[NovelResponse],
    genre: str = ALL_GENRES,
    sort_by: SortKey = SortKey.LATEST
) -> List[NovelResponse]:
    """按类型精确过滤后降序排序；相同值保持原有顺序"""
    key = _SORT_FIELDS[SortKey(sort_by)]
    filtered = [n for n in novels if genre == ALL_GENRES or n.genre == genre]
    # sorted 是稳定排序，取负号而不是 reverse=True 以保证相同值的原有顺序
    return sorted(filtered, key=lambda n: -key(n))


def search_novels(novels: Iterable[NovelResponse], query: str) -> List[NovelResponse]:
    """标题、作者名、标签中任一包含查询词（不区分大小写）；空查询不返回结果"""
    needle = query.strip().lower()
    if not needle:
        return []
    return [
        n for n in novels
        if needle in n.title.lower()
        or needle in n.author_name.lower()
        or any(needle in tag.lower() for tag in n.tags)
    ]


class NovelListCache:
    def __init__(self, api: ApiClient):
        self.api = api
        self.novels: List[NovelResponse] = []
        self.loaded = False

    async def load(self, force: bool = False) -> List[NovelResponse]:
        if not self.loaded or force:
            self.novels = await self.api.get_novels()
            self.loaded = True
        return self.novels

    def get(self, novel_id: int) -> Optional[NovelResponse]:
        for novel in self.novels:
            if novel.id == novel_id:
                return novel
        return None

    def replace(self, novel: NovelResponse) -> None:
        self.novels = [novel if n.id == novel.id else n for n in self.novels]

    def update(self, novel_id: int, **changes) -> None:
        """把 novel_id 对应的条目换成修改后的副本"""
        self.novels = [
            n.model_copy(update=changes) if n.id == novel_id else n
            for n in self.novels
        ]

    def add(self, novel: NovelResponse) -> None:
        self.novels = [novel] + [n for n in self.novels if n.id != novel.id]

    def remove(self, novel_id: int) -> None:
        self.novels = [n for n in self.novels if n.id != novel_id]

    def sync(self, novel: NovelResponse) -> None:
        """保存后同步：已发布的替换或加入，草稿从列表移除"""
        if novel.status != NovelStatus.PUBLISHED:
            self.remove(novel.id)
        elif self.get(novel.id) is None:
            self.add(novel)
        else:
            self.replace(novel)

    def filter(self, predicate: Callable[[NovelResponse], bool]) -> List[NovelResponse]:
        return [n for n in self.novels if predicate(n)]

    def display(self, genre: str = ALL_GENRES, sort_by: SortKey = SortKey.LATEST) -> List[NovelResponse]:
        return filter_and_sort(self.novels, genre, sort_by)

    def search(self, query: str) -> List[NovelResponse]:
        return search_novels(self.novels, query)
