"""备份写入器

写出 PXPL 魔数加 ZIP 容器，ZIP 中先写 manifest.json，再逐个写入模块负载
"""

import asyncio
import dataclasses
import io
import json
import zipfile
from pathlib import Path
from typing import Callable, Optional, Union

from loguru import logger

from ..constants import MANIFEST_FILENAME, PXPL_MAGIC, BackupManifest
from ..errors import BackupWriteError
from .checksums import build_module_info

WriteProgressCallback = Callable[[int, int], None]


class BackupWriter:
    """备份写入器"""

    def build_archive(
        self,
        manifest: BackupManifest,
        module_payloads: dict[str, str],
        on_progress: Optional[WriteProgressCallback] = None,
    ) -> tuple[BackupManifest, bytes]:
        """在内存中构建备份

        Args:
            manifest: 基础清单（modules 字段会被重新计算）
            module_payloads: {模块键: 负载}
            on_progress: 进度回调 (当前步骤, 总步骤)

        Returns:
            (最终清单, 备份字节)
        """
        total_steps = len(module_payloads) + 1
        current_step = 0

        modules = {key: build_module_info(payload) for key, payload in module_payloads.items()}
        final_manifest = dataclasses.replace(manifest, modules=modules)
        manifest_json = json.dumps(final_manifest.to_dict(), ensure_ascii=False, indent=2)

        buffer = io.BytesIO()
        buffer.write(PXPL_MAGIC)
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(MANIFEST_FILENAME, manifest_json.encode("utf-8"))
            current_step += 1
            if on_progress:
                on_progress(current_step, total_steps)

            for key, payload in module_payloads.items():
                zf.writestr(f"{key}.json", payload.encode("utf-8"))
                current_step += 1
                if on_progress:
                    on_progress(current_step, total_steps)

        return final_manifest, buffer.getvalue()

    def _write_sync(
        self,
        target: Path,
        manifest: BackupManifest,
        module_payloads: dict[str, str],
        on_progress: Optional[WriteProgressCallback],
    ) -> BackupManifest:
        final_manifest, data = self.build_archive(manifest, module_payloads, on_progress)
        tmp_path = target.with_name(target.name + ".tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            tmp_path.replace(target)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise BackupWriteError(f"写入备份文件失败 {target}: {e}") from e
        logger.info(f"备份已写入: {target} ({len(data)} 字节, {len(module_payloads)} 个模块)")
        return final_manifest

    async def write(
        self,
        target: Union[str, Path],
        manifest: BackupManifest,
        module_payloads: dict[str, str],
        on_progress: Optional[WriteProgressCallback] = None,
    ) -> BackupManifest:
        """写入备份文件

        Args:
            target: 目标文件路径
            manifest: 基础清单
            module_payloads: {模块键: 负载}
            on_progress: 进度回调 (当前步骤, 总步骤)，在工作线程中调用

        Returns:
            写入文件中的最终清单

        Raises:
            BackupWriteError: 写入失败
        """
        return await asyncio.to_thread(
            self._write_sync, Path(target), manifest, module_payloads, on_progress
        )


__all__ = ["BackupWriter", "WriteProgressCallback"]
