import logging
import os

from loguru import logger


"""
设置日志在控制台的输出以及将不同日志保存在不同文件内
"""

log_format = "{time:YYYY-MM-DD HH:mm:ss}  | {level} |  {message}"

_sink_ids = []
_console_handlers = []


def filter_non_error(record):
    """只保留非ERROR级别的日志"""
    return record["level"].name != "ERROR"


def setup_logging(log_path, console_level=logging.WARNING):
    """
    配置loguru文件日志与logging控制台输出，重复调用时先移除旧的文件处理器
    """
    if not os.path.exists(log_path):
        os.makedirs(log_path)

    for sink_id in _sink_ids:
        logger.remove(sink_id)
    _sink_ids.clear()

    # 日志文件路径
    log_path_main = os.path.join(log_path, '{time:YYYY-MM-DD}.log')
    _sink_ids.append(logger.add(
        log_path_main,
        format=log_format,
        rotation='00:00',
        encoding='utf-8',
        enqueue=True,
        compression='zip',
        filter=filter_non_error
    ))

    #错误日志
    log_path_error = os.path.join(log_path, 'error.log')
    _sink_ids.append(logger.add(
        log_path_error,
        format=log_format,
        level="ERROR",             # 只记录ERROR及以上级别的日志
        rotation="10 MB",          # 当文件达到10MB时轮转
        retention="10 days",       # 保留10天的日志
        compression="zip",         # 压缩旧日志
        enqueue=True,              # 线程安全
    ))

    # 获取根日志记录器
    root_logger = logging.getLogger()
    # 移除根日志记录器中处理器，防止重复操作
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # 设置控制台处理器
    handler_console = logging.StreamHandler()
    handler_console.setLevel(console_level)
    formatter = logging.Formatter("%(asctime)s  - %(message)s")
    handler_console.setFormatter(formatter)
    root_logger.addHandler(handler_console)
    _console_handlers.append(handler_console)
    return list(_sink_ids)


def shutdown_logging():
    """等待队列中的日志写完并移除文件处理器"""
    logger.complete()
    for sink_id in _sink_ids:
        logger.remove(sink_id)
    _sink_ids.clear()
    root_logger = logging.getLogger()
    for handler in _console_handlers:
        root_logger.removeHandler(handler)
    _console_handlers.clear()
