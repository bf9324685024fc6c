"""PixelVault 入口文件

命令行工具：识别、检查、导出和恢复 .pxpl 备份
"""

import os
import sys

# 禁止生成 __pycache__ 目录
os.environ["PYTHONDONTWRITEBYTECODE"] = "1"

from loguru import logger
import asyncio
import argparse

logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> <level>[{level}]</level> {message}",
    level="INFO",
    colorize=True,
)


def setup_logging(config) -> None:
    """根据配置重新设置日志输出"""
    logger.remove()
    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> <level>[{level}]</level> {message}",
        level=config.get("log.level", "INFO"),
        colorize=True,
    )
    log_file = config.get("log.file")
    if log_file:
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} [{level}] {message}",
            level=config.get("log.level", "INFO"),
            rotation="10 MB",
            encoding="utf-8",
        )


def parse_modules(value):
    """解析 --modules 参数，返回 BackupSection 列表或 None"""
    from pixelvault.backup import BackupSection

    if not value:
        return None
    sections = []
    for key in value.split(","):
        key = key.strip()
        if not key:
            continue
        section = BackupSection.from_key(key)
        if section is None:
            raise ValueError(f"未知模块: {key}")
        sections.append(section)
    return sections


def print_progress(update) -> None:
    logger.info(f"[{update.step}/{update.total_steps}] {update.title}: {update.detail}")


async def show_version():
    """显示版本信息"""
    from pixelvault import __version__
    from pixelvault.backup import BACKUP_SCHEMA_VERSION

    print(f"PixelVault {__version__}")
    print(f"备份格式版本: v{BACKUP_SCHEMA_VERSION}")
    return 0


async def detect_backup(manager, archive):
    """识别备份格式"""
    backup_format = await manager.reader.detect_format(archive)
    print(backup_format.value)
    return 0 if backup_format.value != "unknown" else 1


async def inspect_backup(manager, archive):
    """检查备份并打印恢复计划"""
    import json

    plan = await manager.inspect_backup(archive)
    print(json.dumps(plan.to_dict(), ensure_ascii=False, indent=2))
    return 0


async def restore_backup(manager, archive, modules):
    """恢复备份"""
    plan = await manager.inspect_backup(archive)
    for warning in plan.warnings:
        logger.warning(warning)
    if modules is not None:
        plan = plan.with_selection(modules)
    if not plan.selected_modules:
        logger.error("没有可恢复的模块")
        return 1

    result = await manager.restore(archive, plan, print_progress)
    if result.success:
        logger.info("恢复成功")
        return 0
    logger.error(f"恢复失败: {result.to_dict()}")
    return 1


async def export_backup(manager, target, modules):
    """导出备份"""
    manifest = await manager.export(target, modules, print_progress)
    logger.info(f"已导出 {len(manifest.modules)} 个模块到 {target}")
    return 0


async def show_history(manager):
    """显示备份历史"""
    from pixelvault.backup import PathManager

    entries = await manager.get_backup_history()
    if not entries:
        print("暂无备份历史")
        return 0
    for entry in entries:
        print(
            f"{entry.display_name}  v{entry.schema_version}  "
            f"{PathManager.format_size(entry.size_bytes)}  {','.join(entry.modules)}"
        )
    return 0


async def main():
    """主函数：解析命令并执行"""
    parser = argparse.ArgumentParser(
        description="PixelVault 备份命令行工具",
        allow_abbrev=False,
    )
    parser.add_argument("-c", "--config", dest="config", help="配置文件路径")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("version", help="显示版本信息")
    subparsers.add_parser("history", help="显示备份历史")
    for name, help_text in (("detect", "识别备份格式"), ("inspect", "检查备份内容")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("archive", help="备份文件路径")
    for name, help_text in (("restore", "恢复备份"), ("export", "导出备份")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("archive", help="备份文件路径")
        sub.add_argument("--modules", help="模块键，逗号分隔，默认全部")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0
    if args.command == "version":
        return await show_version()

    from pixelvault.config import VaultConfig
    from pixelvault.backup import create_backup_manager

    config = VaultConfig(args.config)
    setup_logging(config)
    manager = create_backup_manager(config)

    if args.command == "detect":
        return await detect_backup(manager, args.archive)
    elif args.command == "inspect":
        return await inspect_backup(manager, args.archive)
    elif args.command == "restore":
        return await restore_backup(manager, args.archive, parse_modules(args.modules))
    elif args.command == "export":
        return await export_backup(manager, args.archive, parse_modules(args.modules))
    elif args.command == "history":
        return await show_history(manager)
    return 1


if __name__ == "__main__":
    try:
        exit_code = asyncio.run(main())
        sys.exit(exit_code if exit_code is not None else 0)
    except KeyboardInterrupt:
        logger.info("收到退出信号，操作已取消")
    except Exception as e:
        logger.error(f"操作失败: {e}")
        sys.exit(1)
