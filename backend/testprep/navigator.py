"""Countdown and question navigation for a test being taken on a device.

The navigator is single threaded and cooperative. Its only suspend points are
the one-second countdown tick and the delayed auto-advance, both scheduled
through ``scheduler.call_later(delay, callback)`` and cancelled through the
returned handle. An ``asyncio`` event loop satisfies that interface.

States::

    RUNNING --tick (time left)--> RUNNING
    RUNNING --tick (time up)----> SUBMITTING   (forced, with recorded answers)
    RUNNING --pause-------------> PAUSED
    PAUSED  --resume------------> RUNNING
    PAUSED  --quit (confirmed)--> DONE         (abandoned, nothing submitted)
    RUNNING --submit------------> SUBMITTING
    SUBMITTING --success--------> DONE         (completed)
    SUBMITTING --error----------> DONE         (failed, never retried)

Operations that do not apply in the current state are ignored and return
False. In particular every submit trigger after the first is ignored.
"""
import enum
import logging

logger = logging.getLogger(__name__)

DEFAULT_DURATION_SECONDS = 30 * 60
AUTO_ADVANCE_DELAY_SECONDS = 2.0
TICK_SECONDS = 1.0


class State(enum.Enum):
    RUNNING = 'running'
    PAUSED = 'paused'
    SUBMITTING = 'submitting'
    DONE = 'done'


class Outcome(enum.Enum):
    COMPLETED = 'completed'
    ABANDONED = 'abandoned'
    FAILED = 'failed'


class SessionNavigator:
    def __init__(self, session_id, questions, submit, scheduler,
                 duration=DEFAULT_DURATION_SECONDS,
                 auto_advance_delay=AUTO_ADVANCE_DELAY_SECONDS,
                 on_event=None):
        """
        Args:
            session_id: Server session being taken
            questions: Question dicts (each with an ``id``) in display order
            submit: Callable ``(session_id, answers) -> response`` invoked once
            scheduler: Object with ``call_later(delay, callback)`` returning a cancelable handle
            duration: Countdown length in whole seconds
            auto_advance_delay: Seconds between selecting an answer and moving on
            on_event: Optional ``(kind, value)`` listener for navigate, state and tick events
        """
        if not questions:
            raise ValueError('A test needs at least one question')
        self.session_id = session_id
        self.questions = list(questions)
        self._submit = submit
        self._scheduler = scheduler
        self.auto_advance_delay = auto_advance_delay
        self._on_event = on_event

        self.state = State.RUNNING
        self.outcome = None
        self.response = None
        self.error = None
        self.current_index = 0
        self.time_left = int(duration)
        self._answers = {}
        self._tick_handle = None
        self._advance_handle = None

        self._schedule_tick()

    # -- read-only views -------------------------------------------------

    @property
    def answers(self):
        return [
            {'questionId': question_id, 'answerIndex': index}
            for question_id, index in self._answers.items()
        ]

    @property
    def current_question(self):
        return self.questions[self.current_index]

    @property
    def answered_count(self):
        return len(self._answers)

    @property
    def progress(self):
        return self.answered_count / len(self.questions) * 100

    @property
    def formatted_time(self):
        minutes, seconds = divmod(max(self.time_left, 0), 60)
        return f'{minutes:02d}:{seconds:02d}'

    @property
    def has_pending_advance(self):
        return self._advance_handle is not None

    def answer_for(self, question_id):
        return self._answers.get(question_id)

    # -- user actions ----------------------------------------------------

    def select_answer(self, answer_index):
        """Record an answer for the current question and schedule auto-advance."""
        if self.state is not State.RUNNING:
            return False
        self._cancel_advance()
        self._answers[self.current_question['id']] = answer_index
        if self.current_index < len(self.questions) - 1:
            target = self.current_index + 1
            self._advance_handle = self._scheduler.call_later(
                self.auto_advance_delay, lambda: self._auto_advance(target),
            )
        return True

    def go_to(self, index):
        if self.state is not State.RUNNING:
            return False
        if not 0 <= index < len(self.questions):
            return False
        self._cancel_advance()
        self._navigate(index)
        return True

    def next(self):
        return self.go_to(self.current_index + 1)

    def previous(self):
        return self.go_to(self.current_index - 1)

    def pause(self):
        if self.state is not State.RUNNING:
            return False
        self._cancel_advance()
        self._cancel_tick()
        self._set_state(State.PAUSED)
        return True

    def resume(self):
        if self.state is not State.PAUSED:
            return False
        self._set_state(State.RUNNING)
        self._schedule_tick()
        return True

    def quit(self, confirmed):
        """Abandon the test from the pause screen. Nothing is submitted."""
        if self.state is not State.PAUSED or not confirmed:
            return False
        self.outcome = Outcome.ABANDONED
        self._set_state(State.DONE)
        return True

    def submit(self):
        if self.state is not State.RUNNING:
            return False
        self._begin_submission(forced=False)
        return True

    # -- internals -------------------------------------------------------

    def _schedule_tick(self):
        self._tick_handle = self._scheduler.call_later(TICK_SECONDS, self._on_tick)

    def _cancel_tick(self):
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

    def _cancel_advance(self):
        if self._advance_handle is not None:
            self._advance_handle.cancel()
            self._advance_handle = None

    def _on_tick(self):
        self._tick_handle = None
        if self.state is not State.RUNNING:
            return
        self.time_left = max(self.time_left - 1, 0)
        self._emit('tick', self.time_left)
        if self.time_left == 0:
            self._begin_submission(forced=True)
        else:
            self._schedule_tick()

    def _auto_advance(self, target):
        self._advance_handle = None
        if self.state is State.RUNNING:
            self._navigate(target)

    def _navigate(self, index):
        self.current_index = index
        self._emit('navigate', index)

    def _begin_submission(self, forced):
        self._cancel_advance()
        self._cancel_tick()
        self._set_state(State.SUBMITTING)
        if forced:
            logger.info('Time is up for session %s, submitting %d answers',
                        self.session_id, self.answered_count)
        try:
            self.response = self._submit(self.session_id, self.answers)
        except Exception as e:
            logger.warning('Submitting session %s failed: %s', self.session_id, e)
            self.error = e
            self.outcome = Outcome.FAILED
        else:
            self.outcome = Outcome.COMPLETED
        self._set_state(State.DONE)

    def _set_state(self, state):
        self.state = state
        self._emit('state', state)

    def _emit(self, kind, value):
        if self._on_event is not None:
            self._on_event(kind, value)
