"""Test fixtures for chainsync"""

from .fake_chain import BatchRecorder, FakeChain, FakeClock, StopAfter, batch_recorder, fake_clock
