#!/usr/bin/env python3
# python 3.8+

# Command line host: evaluate {expr} placeholders of an HTML document once or keep watching it and re-evaluate on change.

import getopt
import os
import sys
import time

import sexpr
import slatex
import srefresh

_VERSION  = '1.0.0'

_INTERVAL = 0.5 # seconds between file modification checks in watch mode

_HELP     = 'usage: calcpad [options] file' '''

  -h, --help               - Show help information
  -v, --version            - Show version string
  -d, --debug              - Dump debug info to stderr
  -i, --inplace            - Write result back to file instead of stdout
  -w, --watch              - Keep watching file and re-evaluate on changes until Ctrl+C
  -p, --precision=N        - Decimal places of numeric results (default 3)
  --delay=MS               - Milliseconds to wait after last change before evaluating in watch mode (default 300)
  --color=COLOR            - Color of error markers (default red)
  --fontsize=PT            - Font size of rendered LaTeX (default 12)
'''.lstrip ()

_MONTH_NAME = (None, 'Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')

def log_message (msg):
	y, m, d, hh, mm, ss, _, _, _ = time.localtime (time.time ())

	sys.stderr.write (f'[{"%02d/%3s/%04d %02d:%02d:%02d" % (d, _MONTH_NAME [m], y, hh, mm, ss)}] {msg}\n')

#...............................................................................................
class FileSurface (srefresh.EditingSurface):
	"""Document kept in a file edited by some external editor.

Changes are detected by polling the modification time, selection has no meaning
for a file and is only remembered so it can be restored.
	"""

	def __init__ (self, path):
		self.path      = path
		self.selection = (0, 0)
		self.callbacks = []
		self.mtime     = self._stat ()

	def _stat (self):
		return os.stat (self.path).st_mtime

	def get_content_snapshot (self):
		with open (self.path, encoding = 'utf8') as fd:
			return fd.read ()

	def get_selection (self):
		return self.selection

	def set_selection (self, from_, to):
		self.selection = (from_, to)

	def replace_content (self, snapshot, preserve_formatting = True):
		with open (self.path, 'w', encoding = 'utf8') as fd:
			fd.write (snapshot)

		self.mtime = self._stat () # own write is not an external change

		log_message (f'Updated {self.path!r}')

	def on_content_changed (self, callback):
		return srefresh.Subscription (self.callbacks, callback)

	def poll (self):
		mtime = self._stat ()

		if mtime == self.mtime:
			return False

		self.mtime = mtime

		for callback in list (self.callbacks):
			callback ()

		return True

#...............................................................................................
def evaluate_file (path, evaluator, inplace = False):
	with open (path, encoding = 'utf8') as fd:
		text = fd.read ()

	out = evaluator.evaluate_document (text)

	if not inplace:
		sys.stdout.write (out)

	elif out != text:
		with open (path, 'w', encoding = 'utf8') as fd:
			fd.write (out)

	return out

def watch (path, evaluator, delay = None, interval = _INTERVAL):
	surface    = FileSurface (path)
	controller = srefresh.RefreshController (surface, evaluator, delay = delay)

	log_message (f'Watching {path!r}, press Ctrl+C to stop.')

	controller.notify () # initial evaluation

	try:
		while 1:
			time.sleep (interval)

			if surface.poll ():
				log_message ('File changed, re-evaluating...')

	except KeyboardInterrupt:
		pass

	finally:
		controller.close ()

	return 0

def _usage (msg = None):
	if msg:
		print (f'{msg}\n', file = sys.stderr)

	print (_HELP, file = sys.stderr)

	return 1

def main (argv = None):
	try:
		opts, args = getopt.getopt (sys.argv [1:] if argv is None else argv, 'hvdiwp:',
			['help', 'version', 'debug', 'inplace', 'watch', 'precision=', 'delay=', 'color=', 'fontsize='])
	except getopt.GetoptError as e:
		return _usage (str (e))

	inplace = watching = False
	delay   = precision = color = None

	try:
		for opt, val in opts:
			if opt in {'-h', '--help'}:
				print (_HELP)

				return 0

			elif opt in {'-v', '--version'}:
				print (_VERSION)

				return 0

			elif opt in {'-d', '--debug'}:
				os.environ ['CALCPAD_DEBUG'] = '1'

				sexpr.set_debug (True)
				srefresh.set_debug (True)

			elif opt in {'-i', '--inplace'}:
				inplace = True
			elif opt in {'-w', '--watch'}:
				watching = True
			elif opt in {'-p', '--precision'}:
				precision = int (val)
			elif opt == '--delay':
				delay = int (val) / 1000
			elif opt == '--color':
				color = val
			elif opt == '--fontsize':
				slatex.set_fontsize (float (val))

	except ValueError as e:
		return _usage (f'invalid option value: {e}')

	if len (args) != 1:
		return _usage ('expecting exactly one file')

	path      = args [0]
	evaluator = sexpr.Evaluator (precision = precision, error_color = color)

	if not os.path.isfile (path):
		return _usage (f'file not found: {path!r}')

	if watching:
		return watch (path, evaluator, delay)

	evaluate_file (path, evaluator, inplace)

	return 0

if __name__ == '__main__':
	sys.exit (main ())
