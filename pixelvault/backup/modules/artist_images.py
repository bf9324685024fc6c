"""艺术家图片模块处理器

恢复为部分键合并：只更新已存在艺术家的图片链接，不新增也不删除艺术家
"""

import asyncio

from loguru import logger

from ..constants import BackupSection
from ..models import ArtistImageBackupEntry
from ..stores import ArtistStore
from ..validation.sanitizer import ContentSanitizer
from .base import BackupModuleHandler


class ArtistImagesModuleHandler(BackupModuleHandler):
    """艺术家图片"""

    section = BackupSection.ARTIST_IMAGES

    def __init__(self, store: ArtistStore, sanitizer: ContentSanitizer = None):
        self.store = store
        self.sanitizer = sanitizer or ContentSanitizer()

    async def _entries(self, include_empty: bool) -> list[ArtistImageBackupEntry]:
        artists = await asyncio.to_thread(self.store.list_artists)
        return [
            ArtistImageBackupEntry(artist_name=a["name"], image_url=a.get("image_url") or "")
            for a in artists
            if include_empty or a.get("image_url")
        ]

    async def export(self) -> str:
        entries = await self._entries(include_empty=False)
        return self._dumps([e.to_dict() for e in entries])

    async def count_entries(self) -> int:
        return len(await self._entries(include_empty=False))

    async def snapshot(self) -> str:
        # 快照包含没有图片的艺术家，回滚时才能清除本次新写入的链接
        entries = await self._entries(include_empty=True)
        return self._dumps([e.to_dict() for e in entries])

    async def restore(self, payload: str) -> None:
        updated = 0
        for item in self._loads_list(payload):
            if not isinstance(item, dict):
                continue
            entry = ArtistImageBackupEntry.from_dict(item)
            if not entry.artist_name:
                continue
            image_url = self.sanitizer.sanitize_url(entry.image_url)
            found = await asyncio.to_thread(
                self.store.update_image_url, entry.artist_name, image_url or None
            )
            if found:
                updated += 1
        logger.info(f"恢复模块 {self.section.key}: 更新了 {updated} 位艺术家的图片")

    async def rollback(self, snapshot: str) -> None:
        """按快照原样写回图片链接

        快照来自本地数据，不经过链接清洗，非 http 链接也会被还原
        """
        entries = [ArtistImageBackupEntry.from_dict(item) for item in self._loads_list(snapshot)]
        for entry in entries:
            await asyncio.to_thread(
                self.store.update_image_url, entry.artist_name, entry.image_url or None
            )
        logger.info(f"回滚模块 {self.section.key}: 还原了 {len(entries)} 位艺术家的图片")


__all__ = ["ArtistImagesModuleHandler"]
