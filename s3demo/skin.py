from cmd2 import Fg, ansi
import logging

def __style(string, col):
    """ Colour a string with a particular style """
    return ansi.style(string, fg=Fg[col.upper()])

def _i(string, col='green'):
    """ Info string """
    return __style(string,col)

def _e(string, col='blue'):
    """ Entity string (bucket names, keys) """
    return __style(string,col)

def _p(string, col='magenta'):
    """ Prompt String """
    return __style(string,col)

def _err(string,col='red'):
    return __style(string,col)

def _log(string,col='cyan'):
    return __style(string,col)

def fmt_size(num, suffix="B"):
    """ Take the sizes and humanize them """
    for unit in ("", "Ki", "Mi", "Gi", "Ti", "Pi", "Ei", "Zi"):
        if abs(num) < 1024.0:
            return f"{num:3.1f}{unit}{suffix}"
        num /= 1024.0
    return f"{num:.1f}Yi{suffix}"

def fmt_date(adate):
    """ Take the reported date and humanize it"""
    if adate is None:
        return '-'
    return adate.strftime('%Y-%m-%d %H:%M:%S %Z')

def fmt_object(obj, width=0):
    """
    One line of an object listing: key, size (exact and humanized), date and etag.
    The key is padded to width so that a page lines up.
    """
    size = obj.size or 0
    etag = obj.etag or ''
    return (f"{_e(f'{obj.object_name:<{width}}')}  {size:>12d}  "
            f"{fmt_size(size):>9}  {fmt_date(obj.last_modified)}  {etag}")


class ColourFormatter(logging.Formatter):
    def format(self, record):
        message = super().format(record)
        if record.levelno >= logging.ERROR:
            return _err(message)
        else:
            return _log(message)
