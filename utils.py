import logging


def logger_init(file=None, level=logging.INFO):
    """Configure the root logger: stream handler always, file handler when file is given."""
    logger = logging.getLogger()
    logger.setLevel(level)

    formatter = logging.Formatter(
        '%(asctime)s | %(processName)s | %(message)s', datefmt='%Y %b %d %H:%M:%S')

    handler_stream = logging.StreamHandler()  # sys.stderr
    handler_stream.setLevel(level)
    handler_stream.setFormatter(formatter)
    logger.addHandler(handler_stream)

    if file is not None:
        handler_file = logging.FileHandler(f'{file}.log', 'w')
        handler_file.setLevel(level)
        handler_file.setFormatter(formatter)
        logger.addHandler(handler_file)

    return logger
