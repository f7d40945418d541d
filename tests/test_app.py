import io
import json
import os
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

from clipgrab import app
from clipgrab.clipboard.common import SaveResult


class AppTests(unittest.TestCase):
    def setUp(self):
        env = mock.patch.dict(os.environ)
        env.start()
        self.addCleanup(env.stop)
        logging_setup = mock.patch.object(app, 'setup_logging')
        logging_setup.start()
        self.addCleanup(logging_setup.stop)

    def run_main(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = app.main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_check(self):
        with mock.patch.object(app.clipboard, 'has_clipboard_image', return_value=True):
            self.assertEqual(self.run_main(['check']), (0, 'yes\n', ''))
        with mock.patch.object(app.clipboard, 'has_clipboard_image', return_value=False):
            self.assertEqual(self.run_main(['check']), (1, 'no\n', ''))

    def test_save(self):
        with mock.patch.object(app.clipboard, 'save_clipboard_image',
                               return_value=SaveResult.ok('/tmp/clipgrab/clipboard-1.png')):
            code, out, _ = self.run_main(['save'])
        self.assertEqual(code, 0)
        self.assertEqual(out, '/tmp/clipgrab/clipboard-1.png\n')

    def test_save_failure(self):
        failure = SaveResult.fail("No image found in clipboard.", 'no_image')
        with mock.patch.object(app.clipboard, 'save_clipboard_image', return_value=failure):
            code, out, err = self.run_main(['save'])
            self.assertEqual((code, out), (1, ''))
            self.assertIn("No image found in clipboard.", err)
            code, out, _ = self.run_main(['save', '--json'])
        self.assertEqual(json.loads(out), {'success': False, 'error': "No image found in clipboard."})

    def test_options_exported_to_environment(self):
        with mock.patch.object(app.clipboard, 'has_clipboard_image', return_value=False):
            self.run_main(['--dir', 'shots', '--timeout', '3', 'check'])
        self.assertEqual(os.environ['CLIPGRAB_DIR'], os.path.abspath('shots'))
        self.assertEqual(os.environ['CLIPGRAB_TIMEOUT'], '3.0')

    def test_requires_mode(self):
        with self.assertRaises(SystemExit) as cm:
            self.run_main([])
        self.assertEqual(cm.exception.code, 1)


if __name__ == '__main__':
    unittest.main()
