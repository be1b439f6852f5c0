#!/usr/bin/env python3
"""
capfs Unit Tests

Tests for the building blocks: exceptions, logging, configuration, path
resolution, scope matching, metadata and the resource table.

Run with: python -m pytest capfs/tests -v
Or: python -m capfs.tests.unit_tests

Author: YSNRFD
Version: 1.0.0
"""

import io
import json
import os
import pathlib
import shutil
import sys
import tempfile
import threading
import unittest

POSIX_ONLY = unittest.skipIf(os.name != 'posix', "POSIX path layout")


def setUpModule():
    from capfs.logger import Logger, LogLevel
    Logger.initialize(level=LogLevel.DEBUG, console_output=False)


class TestExceptions(unittest.TestCase):
    """Test the exception hierarchy."""

    def test_path_forbidden(self):
        """Test PathForbiddenError message and code."""
        from capfs.exceptions import PathForbiddenError, SecurityException

        exc = PathForbiddenError("/etc/shadow", operation="read_file")

        self.assertIsInstance(exc, SecurityException)
        self.assertEqual(exc.message, "forbidden path: /etc/shadow")
        self.assertEqual(exc.error_code, 5101)
        self.assertEqual(exc.context['operation'], "read_file")
        self.assertEqual(str(exc), "[Error 5101] forbidden path: /etc/shadow")

    def test_resource_kind_is_handle_not_found(self):
        """A kind mismatch is reported as a missing handle."""
        from capfs.exceptions import HandleNotFoundError, ResourceKindError

        exc = ResourceKindError(3, expected="file", actual="lines")

        self.assertIsInstance(exc, HandleNotFoundError)
        self.assertEqual(exc.handle, 3)
        self.assertEqual(exc.error_code, 6002)
        self.assertTrue(exc.message.startswith("bad resource id: 3"))

    def test_encoding_error(self):
        """Test EncodingError message."""
        from capfs.exceptions import EncodingError

        exc = EncodingError("/tmp/image.png")

        self.assertEqual(exc.path, "/tmp/image.png")
        self.assertIn("stream did not contain valid UTF-8", exc.message)
        self.assertEqual(exc.error_code, 4103)

    def test_config_exceptions(self):
        """Test configuration exceptions carry their context."""
        from capfs.exceptions import ConfigLoadError, ConfigValidationError

        exc = ConfigLoadError("Configuration file not found", path="capfs.json")
        self.assertEqual(exc.path, "capfs.json")
        self.assertIn("path=capfs.json", str(exc))

        exc = ConfigValidationError("bad value", key="scope.allow")
        self.assertEqual(exc.error_code, 1102)
        self.assertEqual(exc.key, "scope.allow")

    def test_capfs_errors_tuple(self):
        """Every concrete error is covered by CAPFS_ERRORS."""
        from capfs.exceptions import (
            CAPFS_ERRORS, FileOperationError, HandleNotFoundError,
            InvalidPathError, ScopeConfigError,
        )

        for exc in (
            FileOperationError("failed", operation="read"),
            HandleNotFoundError(1),
            InvalidPathError("x", reason="bad"),
            ScopeConfigError("$NOPE"),
        ):
            self.assertIsInstance(exc, CAPFS_ERRORS)


class TestLogger(unittest.TestCase):
    """Test the logging system."""

    def test_logger_singleton(self):
        """Test logger creation and singleton."""
        from capfs.logger import Logger

        self.assertIs(Logger('scope'), Logger('scope'))
        self.assertIsNot(Logger('scope'), Logger('filesystem'))

    def test_audit_buffer(self):
        """Warnings land in the audit buffer with their context."""
        from capfs.logger import Logger, get_logger

        Logger.clear_audit_logs()
        get_logger('audit-test').warning("Path forbidden", context={'path': '/x'})

        logs = Logger.get_audit_logs(level='WARNING', subsystem='audit-test')
        self.assertEqual(len(logs), 1)
        self.assertEqual(logs[0]['context']['path'], '/x')

    def test_log_levels(self):
        """Test log level ordering."""
        from capfs.logger import LogLevel

        self.assertTrue(LogLevel.ERROR > LogLevel.INFO)
        self.assertTrue(LogLevel.DEBUG < LogLevel.WARNING)


class TestConfig(unittest.TestCase):
    """Test the configuration system."""

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmp, ignore_errors=True)

    def tearDown(self):
        from capfs.core.config_loader import ConfigLoader
        ConfigLoader().reset()

    def _write(self, content: str) -> str:
        path = os.path.join(self.tmp, 'capfs.json')
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return path

    def test_default_config(self):
        """Test default configuration values."""
        from capfs.core.config_loader import Config

        config = Config()

        self.assertEqual(config.scope.allow, [])
        self.assertEqual(config.filesystem.line_buffer_size, 8192)
        self.assertEqual(config.filesystem.default_dir_mode, 0o777)
        self.assertEqual(config.logging.level, "INFO")

    def test_load(self):
        """Test configuration loading."""
        from capfs.core.config_loader import ConfigLoader, get_config

        path = self._write(json.dumps({
            'scope': {'allow': ['$HOME/docs'], 'deny': ['$HOME/docs/secret']},
            'base_directories': {'Home': '/home/u'},
            'filesystem': {'line_buffer_size': 1024},
            'logging': {'level': 'DEBUG', 'console_output': False},
        }))

        config = ConfigLoader().load(path)

        self.assertEqual(config.scope.allow, ['$HOME/docs'])
        self.assertEqual(config.base_directories, {'Home': '/home/u'})
        self.assertIs(get_config(), config)
        self.assertEqual(ConfigLoader().get('filesystem.line_buffer_size'), 1024)
        self.assertEqual(ConfigLoader().get('filesystem.missing', 'x'), 'x')
        self.assertEqual(ConfigLoader().to_dict()['logging']['level'], 'DEBUG')

    def test_missing_file(self):
        """A missing file raises ConfigLoadError."""
        from capfs.core.config_loader import ConfigLoader
        from capfs.exceptions import ConfigLoadError

        with self.assertRaises(ConfigLoadError):
            ConfigLoader().load(os.path.join(self.tmp, 'nope.json'))

    def test_invalid_json(self):
        """Malformed JSON raises ConfigLoadError."""
        from capfs.core.config_loader import ConfigLoader
        from capfs.exceptions import ConfigLoadError

        with self.assertRaises(ConfigLoadError):
            ConfigLoader().load(self._write('{"scope": '))

    def test_invalid_values(self):
        """Wrongly shaped values raise ConfigValidationError."""
        from capfs.core.config_loader import ConfigLoader
        from capfs.exceptions import ConfigValidationError

        for content in (
            '[]',
            '{"scope": {"allow": "/home"}}',
            '{"filesystem": {"line_buffer_size": 0}}',
            '{"logging": {"level": "LOUD"}}',
            '{"base_directories": {"Home": 3}}',
            '{"scope": ["/home"]}',
            '{"filesystem": 4096}',
            '{"logging": "DEBUG"}',
        ):
            with self.subTest(content=content):
                with self.assertRaises(ConfigValidationError):
                    ConfigLoader().load(self._write(content))

    def test_set(self):
        """Runtime updates accept known keys only."""
        from capfs.core.config_loader import ConfigLoader
        from capfs.exceptions import ConfigValidationError

        loader = ConfigLoader()
        loader.load_dict({})
        loader.set('filesystem.line_buffer_size', 64)
        self.assertEqual(loader.config.filesystem.line_buffer_size, 64)

        with self.assertRaises(ConfigValidationError):
            loader.set('filesystem.nope', 1)

    def test_reload(self):
        """Reloading picks up changes made to the file."""
        from capfs.core.config_loader import ConfigLoader, get_config

        path = self._write(json.dumps({'scope': {'allow': ['/a']}}))
        loader = ConfigLoader()
        loader.load(path)

        self._write(json.dumps({'scope': {'allow': ['/b']}}))
        config = loader.reload(path)

        self.assertEqual(config.scope.allow, ['/b'])
        self.assertIs(get_config(), config)


@POSIX_ONLY
class TestPathResolver(unittest.TestCase):
    """Test path resolution."""

    def test_normalize(self):
        """Test absolute paths are normalized."""
        from capfs.filesystem.path_resolver import PathResolver

        self.assertEqual(PathResolver.resolve('/tmp/a/./b//c'), '/tmp/a/b/c')
        self.assertEqual(PathResolver.resolve(pathlib.PurePosixPath('/tmp/x')), '/tmp/x')

    def test_relative_to_cwd(self):
        """Relative paths without a base directory use the working directory."""
        from capfs.filesystem.path_resolver import PathResolver

        self.assertEqual(PathResolver.resolve('rel.txt'), os.path.join(os.getcwd(), 'rel.txt'))

    def test_rejects_traversal(self):
        """Parent-directory components are never accepted."""
        from capfs.filesystem.path_resolver import PathResolver
        from capfs.exceptions import InvalidPathError

        for raw in ('/tmp/../etc/passwd', '../x', 'a/..', 'file:///tmp/../etc'):
            with self.subTest(raw=raw):
                with self.assertRaises(InvalidPathError):
                    PathResolver.resolve(raw)

    def test_rejects_empty_and_nul(self):
        from capfs.filesystem.path_resolver import PathResolver
        from capfs.exceptions import InvalidPathError

        with self.assertRaises(InvalidPathError):
            PathResolver.resolve('')
        with self.assertRaises(InvalidPathError):
            PathResolver.resolve('/tmp/a\0b')

    def test_file_url(self):
        """Test file: URLs are converted to paths."""
        from capfs.filesystem.path_resolver import PathResolver
        from capfs.exceptions import InvalidPathError

        self.assertEqual(PathResolver.resolve('file:///tmp/a%20b.txt'), '/tmp/a b.txt')
        self.assertEqual(PathResolver.resolve('file://localhost/tmp/x'), '/tmp/x')

        with self.assertRaises(InvalidPathError):
            PathResolver.resolve('file://server/tmp/x')

    def test_base_directory(self):
        """Test anchoring to a base directory."""
        from capfs.filesystem.base_directory import BaseDirectory, MappingBaseDirectoryResolver
        from capfs.filesystem.path_resolver import PathResolver
        from capfs.exceptions import InvalidPathError

        dirs = MappingBaseDirectoryResolver({'AppData': '/data/app'})

        self.assertEqual(
            PathResolver.resolve('x/y.txt', BaseDirectory.APP_DATA, dirs),
            '/data/app/x/y.txt'
        )
        self.assertEqual(PathResolver.resolve('y.txt', 'AppData', dirs), '/data/app/y.txt')

        with self.assertRaises(InvalidPathError):
            PathResolver.resolve('y.txt', BaseDirectory.HOME, dirs)
        with self.assertRaises(InvalidPathError):
            PathResolver.resolve('y.txt', 'Nowhere', dirs)
        with self.assertRaises(InvalidPathError):
            PathResolver.resolve('y.txt', BaseDirectory.APP_DATA)

    def test_file_url_ignores_base_directory(self):
        """A file URL is absolute; the base directory plays no part."""
        from capfs.filesystem.base_directory import BaseDirectory
        from capfs.filesystem.path_resolver import PathResolver

        self.assertTrue(PathResolver.parse('file:///tmp/x').from_url)
        self.assertFalse(PathResolver.parse('/tmp/x').from_url)
        self.assertEqual(PathResolver.resolve('file:///tmp/x', BaseDirectory.HOME), '/tmp/x')

    def test_base_directory_variables(self):
        from capfs.filesystem.base_directory import BaseDirectory

        self.assertEqual(BaseDirectory.APP_CONFIG.variable, '$APPCONFIG')
        self.assertIs(BaseDirectory.from_variable('$home'), BaseDirectory.HOME)
        self.assertIsNone(BaseDirectory.from_variable('$NOPE'))


@POSIX_ONLY
class TestMatcher(unittest.TestCase):
    """Test scope pattern matching."""

    def test_literal_prefix(self):
        """A literal path matches itself and its descendants only."""
        from capfs.security.matcher import GlobPatternMatcher

        allow = GlobPatternMatcher().compile(['/home/u/docs'])

        self.assertTrue(allow.matches('/home/u/docs'))
        self.assertTrue(allow.matches('/home/u/docs/a/b.txt'))
        self.assertFalse(allow.matches('/home/u/docsx'))
        self.assertFalse(allow.matches('/home/u'))

    def test_trailing_separator(self):
        """'docs/' admits the directory itself as well as its children."""
        from capfs.security.matcher import GlobPatternMatcher

        allow = GlobPatternMatcher().compile(['/home/u/docs/', '/srv//'])

        self.assertTrue(allow.matches('/home/u/docs'))
        self.assertTrue(allow.matches('/home/u/docs/a.txt'))
        self.assertTrue(allow.matches('/srv'))
        self.assertFalse(allow.matches('/home/u/docsx'))

    def test_wildcards(self):
        """'*' stays in one component, '**' crosses components."""
        from capfs.security.matcher import GlobPatternMatcher

        single = GlobPatternMatcher().compile(['/data/*.txt'])
        self.assertTrue(single.matches('/data/a.txt'))
        self.assertFalse(single.matches('/data/sub/a.txt'))

        deep = GlobPatternMatcher().compile(['/data/**/*.txt'])
        self.assertTrue(deep.matches('/data/sub/inner/a.txt'))
        self.assertFalse(deep.matches('/other/a.txt'))

    def test_case_sensitivity(self):
        from capfs.security.matcher import GlobPatternMatcher

        self.assertFalse(GlobPatternMatcher(case_insensitive=False).compile(['/Data']).matches('/data'))
        self.assertTrue(GlobPatternMatcher(case_insensitive=True).compile(['/Data']).matches('/data'))

    def test_root_and_empty(self):
        """'/' grants everything; an empty set grants nothing."""
        from capfs.security.matcher import GlobPatternMatcher
        from capfs.exceptions import ScopeConfigError

        everything = GlobPatternMatcher().compile(['/'])
        self.assertTrue(everything.matches('/etc/passwd'))
        self.assertTrue(everything.matches('/'))

        self.assertFalse(GlobPatternMatcher().compile([]).matches('/etc/passwd'))

        with self.assertRaises(ScopeConfigError):
            GlobPatternMatcher().compile([''])


@POSIX_ONLY
class TestScope(unittest.TestCase):
    """Test composite scope evaluation."""

    def test_deny_overrides_allow(self):
        """The docs/secret scenario."""
        from capfs.security.scope import CompositeScope

        scope = CompositeScope.build([
            (['/home/u/docs'], []),
            ([], ['/home/u/docs/secret']),
        ])

        self.assertTrue(scope.is_allowed('/home/u/docs/a.txt'))
        self.assertFalse(scope.is_allowed('/home/u/docs/secret/x.txt'))
        self.assertFalse(scope.is_allowed('/home/u/other.txt'))

    def test_deny_wins_regardless_of_specificity(self):
        from capfs.security.scope import CompositeScope

        scope = CompositeScope.build([(['/srv/data/public/file.txt'], ['/srv'])])

        self.assertFalse(scope.is_allowed('/srv/data/public/file.txt'))

    def test_empty_allow_admits_nothing(self):
        from capfs.security.scope import CompositeScope

        self.assertFalse(CompositeScope.build([]).is_allowed('/tmp'))

    def test_monotonic(self):
        """Adding allow never shrinks access; adding deny never grows it."""
        from capfs.security.scope import CompositeScope

        paths = ['/a', '/a/b', '/a/b/c.txt', '/b/x', '/c']
        base = CompositeScope.build([(['/a'], ['/a/b/c.txt'])])
        wider = CompositeScope.build([(['/a'], ['/a/b/c.txt']), (['/b'], [])])
        narrower = CompositeScope.build([(['/a'], ['/a/b/c.txt']), ([], ['/a/b'])])

        for path in paths:
            with self.subTest(path=path):
                if base.is_allowed(path):
                    self.assertTrue(wider.is_allowed(path))
                if narrower.is_allowed(path):
                    self.assertTrue(base.is_allowed(path))

    def test_source_snapshot(self):
        """Snapshots are unaffected by later extensions."""
        from capfs.security.scope import ScopeOrigin, ScopeSource

        source = ScopeSource(allow=['/srv/data'])
        snapshot = source.snapshot()
        source.allow_directory('/srv/uploads')
        source.forbid_file('/srv/data/.env')

        self.assertEqual(snapshot.allow, ('/srv/data',))
        self.assertEqual(source.snapshot().allow, ('/srv/data', '/srv/uploads'))
        self.assertEqual(source.snapshot().deny, ('/srv/data/.env',))
        self.assertIs(snapshot.origin, ScopeOrigin.BASELINE)

    def test_variable_expansion(self):
        """$VARIABLE prefixes expand through the base directory resolver."""
        from capfs.filesystem.base_directory import MappingBaseDirectoryResolver
        from capfs.security.scope import ScopeSource, expand_pattern
        from capfs.exceptions import ScopeConfigError

        dirs = MappingBaseDirectoryResolver({'Home': '/home/u'})

        self.assertEqual(expand_pattern('$HOME/docs/**', dirs), '/home/u/docs/**')
        self.assertEqual(expand_pattern('$HOME', dirs), '/home/u')
        self.assertEqual(expand_pattern('/plain', None), '/plain')
        self.assertEqual(ScopeSource(allow=['$HOME/x'], directories=dirs).snapshot().allow,
                         ('/home/u/x',))

        with self.assertRaises(ScopeConfigError):
            expand_pattern('$NOPE/x', dirs)
        with self.assertRaises(ScopeConfigError):
            expand_pattern('$APPDATA/x', dirs)
        with self.assertRaises(ScopeConfigError):
            expand_pattern('$HOME/x', None)

    def test_access_context(self):
        from capfs.security.scope import AccessContext, ScopeOrigin

        context = AccessContext.of(allow=['/a'], global_deny=['/a/b'])

        self.assertEqual(context.command_grant.allow, ('/a',))
        self.assertEqual(context.global_grant.deny, ('/a/b',))
        self.assertIs(context.global_grant.origin, ScopeOrigin.GLOBAL)
        self.assertFalse(AccessContext().command_grant)

    def test_grant_expansion(self):
        """Caller grants expand $VARIABLE patterns and keep their origin."""
        from capfs.filesystem.base_directory import MappingBaseDirectoryResolver
        from capfs.security.scope import ScopeGrant, ScopeOrigin
        from capfs.exceptions import ScopeConfigError

        dirs = MappingBaseDirectoryResolver({'Document': '/home/u/Documents'})
        grant = ScopeGrant.of(['$DOCUMENT/**'], ['$DOCUMENT/private'], ScopeOrigin.GLOBAL)

        expanded = grant.expand(dirs)

        self.assertEqual(expanded.allow, ('/home/u/Documents/**',))
        self.assertEqual(expanded.deny, ('/home/u/Documents/private',))
        self.assertIs(expanded.origin, ScopeOrigin.GLOBAL)

        plain = ScopeGrant.of(['/a'])
        self.assertIs(plain.expand(None), plain)

        with self.assertRaises(ScopeConfigError):
            ScopeGrant.of(['$HOME']).expand(dirs)

    def test_grant_entries(self):
        """Entries tag each pattern with its kind and origin."""
        from capfs.security.scope import (
            CompositeScope, ScopeEntry, ScopeGrant, ScopeKind, ScopeOrigin
        )

        grant = ScopeGrant.of(['/a'], ['/a/b'], ScopeOrigin.GLOBAL)

        self.assertEqual(grant.entries(), [
            ScopeEntry('/a', ScopeKind.ALLOW, ScopeOrigin.GLOBAL),
            ScopeEntry('/a/b', ScopeKind.DENY, ScopeOrigin.GLOBAL),
        ])

        scope = CompositeScope.from_grants([grant, ScopeGrant.of(['/c'])])
        self.assertEqual(scope.allow, ('/a', '/c'))
        self.assertEqual(scope.deny, ('/a/b',))


class TestFileInfo(unittest.TestCase):
    """Test metadata normalization."""

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmp, ignore_errors=True)
        self.file = os.path.join(self.tmp, 'a.txt')
        with open(self.file, 'wb') as f:
            f.write(b'12345')

    def test_from_stat(self):
        from capfs.filesystem.file_info import FileInfo

        info = FileInfo.from_stat(os.stat(self.file))

        self.assertTrue(info.is_file)
        self.assertFalse(info.is_directory)
        self.assertFalse(info.is_symlink)
        self.assertEqual(info.size, 5)
        self.assertIsInstance(info.mtime, int)
        self.assertEqual(info.mtime, os.stat(self.file).st_mtime_ns // 1_000_000)

    @POSIX_ONLY
    def test_platform_fields(self):
        """Unix fields are set, Windows fields are None."""
        from capfs.filesystem.file_info import FileInfo

        info = FileInfo.from_stat(os.stat(self.file))

        self.assertIsNone(info.file_attributes)
        self.assertEqual(info.ino, os.stat(self.file).st_ino)
        self.assertIsNotNone(info.mode)
        self.assertIsNotNone(info.nlink)

    @POSIX_ONLY
    def test_readonly(self):
        from capfs.filesystem.file_info import FileInfo

        self.assertFalse(FileInfo.from_stat(os.stat(self.file)).readonly)
        os.chmod(self.file, 0o444)
        self.assertTrue(FileInfo.from_stat(os.stat(self.file)).readonly)

    def test_pre_epoch_milliseconds(self):
        """Pre-epoch times are reported as their distance from the epoch."""
        from capfs.filesystem.file_info import _to_msec

        self.assertEqual(_to_msec(1_500_000_000), 1_500)
        self.assertEqual(_to_msec(-1_500_000_000), 1_500)

    def test_wire_shape(self):
        from capfs.filesystem.file_info import DirEntry, FileInfo

        wire = FileInfo.from_stat(os.stat(self.file)).to_dict()

        self.assertEqual(list(wire), [
            'isFile', 'isDirectory', 'isSymlink', 'size', 'mtime', 'atime',
            'birthtime', 'readonly', 'fileAttributes', 'dev', 'ino', 'mode',
            'nlink', 'uid', 'gid', 'rdev', 'blksize', 'blocks',
        ])
        self.assertEqual(
            DirEntry('a.txt', False, True, False).to_dict(),
            {'name': 'a.txt', 'isDirectory': False, 'isFile': True, 'isSymlink': False}
        )


class TestResourceTable(unittest.TestCase):
    """Test the resource handle table."""

    def test_handles_are_monotonic(self):
        """Handles start at 1 and are never reissued."""
        from capfs.filesystem.resources import FileResource, ResourceTable

        table = ResourceTable()

        first = table.add(FileResource(io.BytesIO(), '/mem/a'))
        second = table.add(FileResource(io.BytesIO(), '/mem/b'))
        table.close(first)
        third = table.add(FileResource(io.BytesIO(), '/mem/c'))

        self.assertEqual((first, second, third), (1, 2, 3))
        self.assertFalse(table.has(first))
        self.assertEqual(len(table), 2)

    def test_close_once(self):
        """Closing releases the stream exactly once."""
        from capfs.filesystem.resources import FileResource, ResourceKind, ResourceTable
        from capfs.exceptions import HandleNotFoundError

        table = ResourceTable()
        stream = io.BytesIO(b'abc')
        handle = table.add(FileResource(stream, '/mem/a'))

        self.assertEqual(table.with_resource(handle, ResourceKind.FILE, lambda r: r.file.read()), b'abc')
        table.close(handle)

        self.assertTrue(stream.closed)
        with self.assertRaises(HandleNotFoundError):
            table.close(handle)
        with self.assertRaises(HandleNotFoundError):
            table.with_resource(handle, ResourceKind.FILE, lambda r: r.file.read())
        self.assertFalse(table.discard(handle))

    def test_kind_mismatch(self):
        from capfs.filesystem.resources import LinesResource, ResourceKind, ResourceTable
        from capfs.exceptions import HandleNotFoundError, ResourceKindError

        table = ResourceTable()
        handle = table.add(LinesResource(io.BytesIO(b'x'), '/mem/a'))

        with self.assertRaises(ResourceKindError):
            table.with_resource(handle, ResourceKind.FILE, lambda r: None)
        with self.assertRaises(HandleNotFoundError):
            table.with_resource(handle, ResourceKind.FILE, lambda r: None)

    def test_line_splitting(self):
        """'\\n' ends a line; one '\\r' before it is dropped."""
        from capfs.filesystem.resources import LinesResource

        cursor = LinesResource(io.BytesIO(b'a\r\nb\n\nc\r\r\nlast'), '/mem/a')

        lines = []
        while True:
            line = cursor.next_line()
            if line is None:
                break
            lines.append(line)

        self.assertEqual(lines, [b'a', b'b', b'', b'c\r', b'last'])

    def test_close_all_and_stats(self):
        from capfs.filesystem.resources import FileResource, LinesResource, ResourceTable

        table = ResourceTable()
        table.add(FileResource(io.BytesIO(), '/mem/a'))
        table.add(LinesResource(io.BytesIO(), '/mem/b'))

        stats = table.get_stats()
        self.assertEqual(stats['open_files'], 1)
        self.assertEqual(stats['open_line_cursors'], 1)
        self.assertEqual([e['path'] for e in table.entries()], ['/mem/a', '/mem/b'])

        self.assertEqual(table.close_all(), 2)
        self.assertEqual(table.get_stats()['open_handles'], 0)
        self.assertEqual(table.get_stats()['handles_issued'], 2)

    def test_concurrent_issuance(self):
        """Handles issued from many threads are unique."""
        from capfs.filesystem.resources import FileResource, ResourceTable

        table = ResourceTable()
        issued: list[int] = []
        lock = threading.Lock()

        def worker():
            for _ in range(50):
                handle = table.add(FileResource(io.BytesIO(), '/mem'))
                with lock:
                    issued.append(handle)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(sorted(issued), list(range(1, 401)))


def run_tests():
    """Run all tests."""
    loader = unittest.TestLoader()
    suite = loader.loadTestsFromModule(sys.modules[__name__])

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    sys.exit(run_tests())
