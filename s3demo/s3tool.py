#! /usr/bin/env python
# -*-python-*-

import sys

from s3demo.logging_utils import get_logger
from s3demo.s3cmd import s3democmd
from s3demo.s3core import resolve_endpoint, resolve_secure
from s3demo.skin import _i, _err


def quote_argument(arg):
    """
    Quote one argv token so that the cmd2 tokenizer hands it back unchanged.
    cmd2 only strips matching outer quotes and knows no escapes, so a token
    holding both kinds of quote cannot be passed through.
    """
    if '"' not in arg:
        return f'"{arg}"'
    if "'" not in arg:
        return f"'{arg}'"
    raise ValueError(f'Cannot pass an argument containing both kinds of quote: {arg}')


def main(argv=None):
    """
    Usage: s3demo [command [arguments]]

    - No arguments: start an interactive shell offering all the commands.
    - Otherwise run one command and exit, e.g.
          s3demo create my-bucket
          s3demo add-object my-bucket report.txt
          s3demo list my-bucket
          s3demo delete-object my-bucket report.txt
          s3demo delete my-bucket

    Set S3_ENDPOINT (e.g. http://localhost:9000) to talk to something other than AWS.
    """
    if argv is None:
        argv = sys.argv
    get_logger()

    app = s3democmd(endpoint=resolve_endpoint(), secure=resolve_secure())

    if len(argv) == 1:
        return app.cmdloop()

    if argv[1] in ('-h', '--help', 'help'):
        app.poutput(main.__doc__)
        app.onecmd_plus_hooks('help')
        return 0

    app.poutput(_i('Running tool'))
    # stays at 1 unless the command runs and succeeds (argument errors included)
    app.exit_code = 1
    try:
        line = ' '.join([argv[1]] + [quote_argument(a) for a in argv[2:]])
    except ValueError as e:
        app.poutput(_err(str(e)))
        return app.exit_code
    app.onecmd_plus_hooks(line)
    if app.exit_code == 0:
        app.poutput(_i('All done!'))
    return app.exit_code


if __name__ == '__main__':
    sys.exit(main(sys.argv))
