"""테스트용 시계 / 난수."""

from datetime import datetime, timedelta

T0 = datetime(2025, 3, 1, 9, 0, 0)


class FrozenClock:
    """now() 를 테스트에서 직접 움직이는 시계."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: int) -> datetime:
        self.current = self.current + timedelta(seconds=seconds)
        return self.current


class ScriptedRandom:
    """random() 이 정해진 값을 순서대로 돌려준다. 다 쓰면 마지막 값을 반복."""

    def __init__(self, *values: float):
        self.values = list(values) or [0.0]
        self.calls = 0

    def random(self) -> float:
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return value
