import cmd2
import logging
from minio.error import MinioException, InvalidResponseError, ServerError
from urllib3.exceptions import HTTPError
from s3demo.s3bucket import (BucketDemo, BucketLookup, BucketNotFoundError,
                             START_AFTER, PAGE_SIZE)
from s3demo.s3core import describe_error
from s3demo.skin import _i, _e, _p, _err, fmt_size, fmt_object, ColourFormatter


logging.getLogger("urllib3.connectionpool").setLevel(logging.ERROR)

# anything a command reports as a failure rather than a traceback
FAILURES = (MinioException, HTTPError, BucketNotFoundError, OSError, ValueError)

# command spellings which are not valid python method names, or are just synonyms
COMMAND_ALIASES = {
    'add-object': 'add_object',
    'put': 'add_object',
    'delete-object': 'delete_object',
}


class s3democmd(cmd2.Cmd):
    """
    s3democmd implements the bucket lifecycle commands of the s3demo tool.

    Each command builds a fresh BucketDemo for the bucket it is given and runs
    exactly one operation on it. Failures are printed and recorded in ``exit_code``
    (1 for failure, 0 for success), so that a one-shot invocation can hand the
    result of its single command back to the shell.
    """

    def __init__(self, endpoint=None, secure=None, client=None):
        """
        Args:
            endpoint (str, optional): non-standard endpoint, already resolved from the environment.
                Defaults to None (AWS).
            secure (bool, optional): TLS flag for an endpoint given without a scheme.
            client (Minio, optional): use this client rather than building one per command.
        """
        super().__init__(allow_cli_args=False)

        self.log = logging.getLogger('s3democmd')
        self.log.setLevel(logging.INFO)

        self.console = logging.StreamHandler()
        self.console.setLevel(logging.INFO)
        self.console.setFormatter(ColourFormatter('%(levelname)s: %(message)s'))
        if not self.log.handlers:
            self.log.addHandler(self.console)

        self.endpoint = endpoint
        self.secure = secure
        self.client = client
        self.prompt = _p('s3demo> ')
        self.intro = _i('Bucket lifecycle demo against ') + _e(endpoint or 'AWS (us-east-1)') + \
            _i('. Try "help".')

        self.hidden_commands = ['eof', '_relative_run_script',
                                'alias', 'macro', 'edit', 'run_pyscript',
                                'run_script', 'shortcuts', 'shell', 'py',
                                'history', 'set',
                                ]

    def get_names(self):
        names = super().get_names()
        return [n for n in names if not (n.startswith('do_') and n[3:] in self.hidden_commands)]

    def precmd(self, statement):
        """ Map the hyphenated and synonym command names onto the real commands """
        line = statement.raw
        command = statement.command
        if command in COMMAND_ALIASES:
            self.log.debug(f'[precmd] {command} -> {COMMAND_ALIASES[command]}')
            line = line.replace(command, COMMAND_ALIASES[command], 1)
        return line

    def _demo(self, bucket):
        return BucketDemo(bucket, endpoint=self.endpoint, client=self.client, secure=self.secure)

    def _fail(self, message, exc):
        # set first: describing an opaque error can itself blow up on an undecodable body
        self.exit_code = 1
        self.log.debug(f'[fail] {type(exc).__name__}: {exc}')
        self.poutput(_err(f'{message}: {describe_error(exc)}'))

    def _ok(self):
        self.exit_code = 0

    create_args = cmd2.Cmd2ArgumentParser()
    create_args.add_argument('bucket', help='bucket name')
    @cmd2.with_argparser(create_args)
    def do_create(self, arg):
        """ Create a new bucket with the given name """
        self.poutput(_i('Attempting to create a bucket called: ') + _e(arg.bucket))
        try:
            self._demo(arg.bucket).create_bucket()
        except FAILURES as e:
            self._fail(f'Unable to create bucket {arg.bucket}', e)
            return
        self.poutput(_i('Bucket ') + _e(arg.bucket) + _i(' created'))
        self._ok()

    delete_args = cmd2.Cmd2ArgumentParser()
    delete_args.add_argument('bucket', help='bucket name')
    @cmd2.with_argparser(delete_args)
    def do_delete(self, arg):
        """
        Try to delete the bucket with the given name.

        The server refuses to delete a bucket which still holds objects, in which
        case we show what the server said.
        """
        self.poutput(_i('Attempting to delete the bucket named: ') + _e(arg.bucket))
        try:
            self._demo(arg.bucket).delete_bucket()
        except (InvalidResponseError, ServerError) as e:
            self._fail("Couldn't delete bucket because", e)
            return
        except FAILURES as e:
            self._fail('Error from S3 when deleting bucket', e)
            return
        self.poutput(_i('Bucket ') + _e(arg.bucket) + _i(' deleted'))
        self._ok()

    list_args = cmd2.Cmd2ArgumentParser()
    list_args.add_argument('bucket', help='bucket name')
    list_args.add_argument('-s', '--start-after', default=START_AFTER,
                           help=f'list objects after this key (default "{START_AFTER}", use "" for all)')
    list_args.add_argument('-n', '--max-keys', type=int, default=PAGE_SIZE,
                           help=f'objects per page (default {PAGE_SIZE})')
    list_args.add_argument('-a', '--all', action='store_true',
                           help='follow the listing cursor until the bucket is exhausted')
    list_args.add_argument('--head', action='store_true',
                           help='check the bucket directly rather than scanning the bucket list')
    @cmd2.with_argparser(list_args)
    def do_list(self, arg):
        """
        Try to find the bucket with the given name and list its objects.

        By default the bucket is found by listing every bucket we can see, and only
        the first page of objects is shown, together with the cursor to use for the next.
        """
        self.poutput(_i('Attempting to find and list out the objects in the bucket called: ')
                     + _e(arg.bucket))
        lookup = BucketLookup.HEAD if arg.head else BucketLookup.SCAN
        try:
            page = self._demo(arg.bucket).find_bucket_list_objects(
                start_after=arg.start_after, max_keys=arg.max_keys,
                lookup=lookup, all_pages=arg.all)
        except FAILURES as e:
            self._fail(f'Unable to list bucket {arg.bucket}', e)
            return

        self.poutput(_i('Found bucket ') + _e(arg.bucket))
        volume = sum(o.size or 0 for o in page.objects)
        self.poutput(_i('List response was: ') + str(len(page)) + _i(' objects (') + fmt_size(volume) +
                     _i(') after ') + _e(repr(page.start_after or '')))
        width = max([len(o.object_name) for o in page.objects], default=0)
        for o in page.objects:
            self.poutput(fmt_object(o, width))
        if page.truncated:
            self.poutput(_i('More objects follow, continue with --start-after ') +
                         _e(page.next_start_after))
        self._ok()

    add_args = cmd2.Cmd2ArgumentParser()
    add_args.add_argument('bucket', help='bucket name')
    add_args.add_argument('file', help='file name, also used as the object key')
    @cmd2.with_argparser(add_args)
    def do_add_object(self, arg):
        """ Add the specified file to the bucket (aliases: add-object, put) """
        self.poutput(_i('Attempting to add the object to the bucket called: ') + _e(arg.bucket))
        try:
            result = self._demo(arg.bucket).put_object(arg.file, arg.file)
        except FAILURES as e:
            self._fail(f'Failed to put {arg.file}', e)
            return
        self.poutput(_i('Uploaded ') + _e(arg.file) + _i(' etag ') + str(result.etag))
        if result.version_id:
            self.poutput(_i('Version: ') + str(result.version_id))
        self._ok()

    delobj_args = cmd2.Cmd2ArgumentParser()
    delobj_args.add_argument('bucket', help='bucket name')
    delobj_args.add_argument('file', help='file name, used as the object key')
    @cmd2.with_argparser(delobj_args)
    def do_delete_object(self, arg):
        """ Remove the specified object from the bucket (alias: delete-object) """
        self.poutput(_i('Attempting to delete the object from the bucket called: ') + _e(arg.bucket))
        try:
            self._demo(arg.bucket).delete_object(arg.file)
        except FAILURES as e:
            self._fail(f"Couldn't delete object {arg.file}", e)
            return
        self.poutput(_i('Deleted ') + _e(arg.file))
        self._ok()

    loglevel_args = cmd2.Cmd2ArgumentParser()
    loglevel_args.add_argument('level', choices=['debug', 'info', 'warning', 'error', 'critical'])
    @cmd2.with_argparser(loglevel_args)
    def do_loglevel(self, arg):
        """ Change logging level for the console and the storage layer """
        level = getattr(logging, arg.level.upper())
        self.log.setLevel(level)
        self.console.setLevel(level)
        logging.getLogger('s3demo').setLevel(level)
        self.poutput(f"Logging level set to {arg.level.upper()}")
        self._ok()

    def default(self, statement):
        self.exit_code = 1
        self.poutput(_err(f'Command not recognised: {statement.command}'))
