# Debounced refresh loop: re-evaluate placeholders of a live document and rewrite it only when output changes.
#
# IDLE       -> PENDING    - change notification, debounce timer (re)started
# PENDING    -> PENDING    - change notification, old timer cancelled and new one started
# PENDING    -> EVALUATING - timer expired, snapshot scanned and evaluated synchronously
# EVALUATING -> IDLE       - nothing to do or candidate same as last applied
# EVALUATING -> APPLYING   - content replaced and selection restored
# APPLYING   -> IDLE       - notifications which arrived during EVALUATING / APPLYING are re-queued here

from functools import partial
import os
import sys
import threading

import sexpr

IDLE, PENDING, EVALUATING, APPLYING, CLOSED = 'idle', 'pending', 'evaluating', 'applying', 'closed'

_DELAY = 0.3 # seconds between last change notification and evaluation
_DEBUG = bool (os.environ.get ('CALCPAD_DEBUG'))

def set_delay (delay):
	global _DELAY
	_DELAY = delay

def set_debug (state):
	global _DEBUG
	_DEBUG = state

#...............................................................................................
class Subscription:
	"""Handle returned by on_content_changed (), cancel () removes the callback."""

	def __init__ (self, callbacks, callback):
		self.callbacks = callbacks
		self.callback  = callback

		callbacks.append (callback)

	def cancel (self):
		if self.callback in self.callbacks:
			self.callbacks.remove (self.callback)

class EditingSurface:
	"""Interface of the rich-text editor hosting the document."""

	def get_content_snapshot (self): # -> str
		raise NotImplementedError

	def get_selection (self): # -> (from, to)
		raise NotImplementedError

	def set_selection (self, from_, to):
		raise NotImplementedError

	def replace_content (self, snapshot, preserve_formatting = True):
		raise NotImplementedError

	def on_content_changed (self, callback): # -> Subscription
		raise NotImplementedError

class TimerScheduler:
	"""Run callback once after delay seconds on a timer thread, returned handle has cancel ()."""

	def schedule (self, delay, callback):
		timer        = threading.Timer (delay, callback)
		timer.daemon = True

		timer.start ()

		return timer

#...............................................................................................
class RefreshController:
	def __init__ (self, surface, evaluator = None, scheduler = None, delay = None):
		self.surface      = surface
		self.evaluator    = sexpr.Evaluator () if evaluator is None else evaluator
		self.scheduler    = TimerScheduler () if scheduler is None else scheduler
		self.delay        = _DELAY if delay is None else delay
		self.state        = IDLE
		self.last_applied = ''

		self._lock        = threading.RLock () # reentrant, replace_content () may notify synchronously from inside a cycle
		self._timer       = None
		self._gen         = 0 # identifies the latest scheduled timer, a superseded timer which already fired is ignored
		self._deferred    = False
		self._subscr      = surface.on_content_changed (self.notify)

	def _log (self, msg):
		if _DEBUG:
			print (f'refresh: {msg}', file = sys.stderr)

	def notify (self, *args):
		with self._lock:
			if self.state == CLOSED:
				return

			if self.state in {EVALUATING, APPLYING}:
				self._deferred = True

				return

			if self._timer is not None:
				self._timer.cancel ()

			self._gen  += 1
			self.state  = PENDING
			self._timer = self.scheduler.schedule (self.delay, partial (self._expired, self._gen))

	def _expired (self, gen):
		with self._lock:
			if self.state != PENDING or gen != self._gen:
				return

			self._timer = None

			self.refresh ()

	def _candidate (self, snapshot): # new content or None if there is nothing to apply
		if '}' not in snapshot:
			self._log ('no placeholders')

			return None

		if snapshot == self.last_applied:
			self._log ('snapshot same as last applied')

			return None

		candidate = self.evaluator.evaluate_document (snapshot)

		if candidate == self.last_applied or candidate == snapshot:
			self._log ('no change after evaluation')

			return None

		return candidate

	def refresh (self):
		"""Run one evaluation cycle synchronously, returns True if document content was replaced."""

		with self._lock:
			if self.state == CLOSED:
				return False

			if self._timer is not None: # explicit refresh supersedes pending one
				self._timer.cancel ()

				self._timer = None

			self.state = EVALUATING

			try:
				candidate = self._candidate (self.surface.get_content_snapshot ())

				if candidate is None:
					return False

				self.state         = APPLYING
				from_, to          = self.surface.get_selection ()

				self.surface.replace_content (candidate, preserve_formatting = True)

				self.last_applied  = candidate

				self.surface.set_selection (from_, to)
				self._log (f'applied, selection restored to ({from_}, {to})')

				return True

			finally:
				if self.state != CLOSED:
					self.state = IDLE

					if self._deferred:
						self._deferred = False

						self.notify ()

	def close (self):
		with self._lock:
			self._subscr.cancel ()

			if self._timer is not None:
				self._timer.cancel ()

				self._timer = None

			self.state     = CLOSED
			self._deferred = False
