"""Tests for the asyncio engine that drives saga generators.

These run processes against a RecordingEnvironment directly, without the
harness, so every effect resolution rule can be checked on its own.
"""

import asyncio

import pytest

from sagatest import (
    END,
    Err,
    Ok,
    TaskCancelledError,
    action_channel,
    call,
    cancel,
    cps,
    delay,
    fork,
    join,
    put,
    put_resolve,
    race,
    run_saga,
    select,
    spawn,
    take,
    take_maybe,
)
from sagatest.runtime import SagaRuntime


def double(value):
    return value * 2


async def fetch_async(value):
    await asyncio.sleep(0)
    return {"id": value}


def nested(value):
    doubled = yield call(double, value)
    return doubled + 1


def read_file(path, callback):
    callback(None, f"contents of {path}")


def broken_reader(path, callback):
    callback(IOError(f"cannot read {path}"))


def blocker():
    yield take("NEVER")


def failing_worker():
    raise ValueError("boom")
    yield  # pragma: no cover


class TestCall:
    @pytest.mark.asyncio
    async def test_sync_function(self, env):
        def process():
            return (yield call(double, 21))

        task = run_saga(process, env)

        assert (await task.done).unwrap() == 42

    @pytest.mark.asyncio
    async def test_async_function_is_awaited(self, env):
        def process():
            return (yield call(fetch_async, 7))

        task = run_saga(process, env)

        assert (await task.done) == Ok({"id": 7})

    @pytest.mark.asyncio
    async def test_generator_function_runs_as_sub_process(self, env):
        def process():
            return (yield call(nested, 4))

        task = run_saga(process, env)

        assert (await task.done).unwrap() == 9
        assert call(double, 4) in env.emitted()

    @pytest.mark.asyncio
    async def test_error_is_thrown_into_process(self, env):
        def process():
            try:
                yield call(failing_worker)
            except ValueError as exc:
                return f"caught {exc}"

        task = run_saga(process, env)

        assert (await task.done).unwrap() == "caught boom"

    @pytest.mark.asyncio
    async def test_uncaught_error_fails_task(self, env):
        def process():
            yield call(failing_worker)

        task = run_saga(process, env)
        outcome = await task.done

        assert outcome.is_err()
        assert isinstance(task.error(), ValueError)
        assert not task.is_cancelled()


class TestMonitor:
    @pytest.mark.asyncio
    async def test_reports_emission_and_resolution(self, env):
        def process():
            yield call(double, 1)
            yield put({"type": "DONE"})

        await run_saga(process, env).done

        assert env.events == [
            ("emitted", 1, call(double, 1)),
            ("resolved", 1, 2),
            ("emitted", 2, put({"type": "DONE"})),
            ("resolved", 2, None),
        ]

    @pytest.mark.asyncio
    async def test_reports_failures(self, env):
        def process():
            try:
                yield call(failing_worker)
            except ValueError:
                pass

        await run_saga(process, env).done

        kind, effect_id, error = env.events[1]
        assert (kind, effect_id) == ("failed", 1)
        assert isinstance(error, ValueError)

    @pytest.mark.asyncio
    async def test_reports_effects_interrupted_by_cancellation(self, env, flush):
        task = run_saga(blocker, env)
        await flush()

        task.cancel()
        await task.done
        await flush()

        assert env.events == [("emitted", 1, take("NEVER")), ("cancelled", 1)]

    @pytest.mark.asyncio
    async def test_raw_awaitables_are_reported_as_futures(self, env):
        def process():
            return (yield delay(1, "late"))

        task = run_saga(process, env)

        assert (await task.done).unwrap() == "late"
        assert isinstance(env.emitted()[0], asyncio.Future)

    @pytest.mark.asyncio
    async def test_unrecognized_values_resolve_to_themselves(self, env):
        def process():
            return (yield 42)

        assert (await run_saga(process, env).done).unwrap() == 42


class TestInputs:
    @pytest.mark.asyncio
    async def test_take_waits_for_matching_input(self, env, flush):
        def process():
            action = yield take("GO")
            return action["value"]

        task = run_saga(process, env)
        await flush()
        env.publish({"type": "OTHER", "value": 0})
        await flush()
        assert task.is_running()

        env.publish({"type": "GO", "value": 1})

        assert (await task.done).unwrap() == 1

    @pytest.mark.asyncio
    async def test_end_terminates_plain_take(self, env, flush):
        reached = []

        def process():
            yield take("GO")
            reached.append(True)

        task = run_saga(process, env)
        await flush()
        env.publish(END)

        assert (await task.done) == Ok(None)
        assert reached == []

    @pytest.mark.asyncio
    async def test_take_maybe_receives_end(self, env, flush):
        def process():
            return (yield take_maybe("GO"))

        task = run_saga(process, env)
        await flush()
        env.publish(END)

        assert (await task.done).unwrap() is END

    @pytest.mark.asyncio
    async def test_put_publishes_to_environment(self, env, flush):
        def process():
            yield put({"type": "PING"})
            return (yield take("PING"))

        task = run_saga(process, env)
        await flush()

        assert env.published == [{"type": "PING"}]
        assert task.is_running()
        task.cancel()
        await task.done

    @pytest.mark.asyncio
    async def test_put_resolve_awaits_dispatch_result(self, env):
        env.publish_result = asyncio.sleep(0, "acknowledged")

        def process():
            return (yield put_resolve({"type": "SAVE"}))

        assert (await run_saga(process, env).done).unwrap() == "acknowledged"

    @pytest.mark.asyncio
    async def test_action_channel_buffers_inputs(self, env, flush):
        def process():
            jobs = yield action_channel("JOB")
            first = yield take(jobs)
            second = yield take(jobs)
            return [first["id"], second["id"]]

        task = run_saga(process, env)
        await flush()
        env.publish({"type": "JOB", "id": 1})
        env.publish({"type": "SKIP"})
        env.publish({"type": "JOB", "id": 2})

        assert (await task.done).unwrap() == [1, 2]

    @pytest.mark.asyncio
    async def test_select_reads_state(self, env):
        env.state = {"user": "ada"}

        def process():
            whole = yield select()
            user = yield select(lambda state, key: state[key], "user")
            return whole, user

        assert (await run_saga(process, env).done).unwrap() == ({"user": "ada"}, "ada")

    def test_close_unsubscribes_from_environment(self, env):
        runtime = SagaRuntime(env)
        assert len(env.listeners) == 1

        runtime.close()

        assert env.listeners == []


class TestCps:
    @pytest.mark.asyncio
    async def test_callback_result(self, env):
        def process():
            return (yield cps(read_file, "a.txt"))

        assert (await run_saga(process, env).done).unwrap() == "contents of a.txt"

    @pytest.mark.asyncio
    async def test_callback_error(self, env):
        def process():
            yield cps(broken_reader, "a.txt")

        task = run_saga(process, env)
        await task.done

        assert isinstance(task.error(), OSError)


class TestRace:
    @pytest.mark.asyncio
    async def test_mapping_race_reports_winner_key(self, env, flush):
        def process():
            return (yield race({"action": take("GO"), "timeout": delay(1000, "slow")}))

        task = run_saga(process, env)
        await flush()
        env.publish({"type": "GO"})

        assert (await task.done).unwrap() == {"action": {"type": "GO"}}

    @pytest.mark.asyncio
    async def test_list_race_fills_losers_with_none(self, env):
        def process():
            return (yield race([take("GO"), call(double, 5)]))

        assert (await run_saga(process, env).done).unwrap() == [None, 10]

    @pytest.mark.asyncio
    async def test_branch_effects_are_reported(self, env, flush):
        def process():
            yield race({"a": take("A"), "b": take("B")})

        task = run_saga(process, env)
        await flush()

        assert take("A") in env.emitted()
        assert take("B") in env.emitted()
        task.cancel()
        await task.done


class TestForks:
    @pytest.mark.asyncio
    async def test_child_runs_before_parent_resumes(self, env, flush):
        log = []

        def child():
            log.append("child started")
            yield take("GO")
            log.append("child finished")

        def parent():
            yield fork(child)
            log.append("parent resumed")

        task = run_saga(parent, env)
        await flush()

        assert log == ["child started", "parent resumed"]
        assert task.is_running()

        env.publish({"type": "GO"})
        await task.done
        assert log[-1] == "child finished"

    @pytest.mark.asyncio
    async def test_join_returns_child_result(self, env):
        def parent():
            child = yield fork(double, 21)
            return (yield join(child))

        assert (await run_saga(parent, env).done).unwrap() == 42

    @pytest.mark.asyncio
    async def test_attached_child_failure_aborts_parent(self, env):
        def parent():
            yield fork(failing_worker)
            yield take("NEVER")

        task = run_saga(parent, env)
        await task.done

        assert isinstance(task.error(), ValueError)
        assert not task.is_cancelled()

    @pytest.mark.asyncio
    async def test_detached_child_failure_is_isolated(self, env):
        def parent():
            child = yield spawn(failing_worker)
            try:
                yield join(child)
            except ValueError as exc:
                return f"child failed: {exc}"

        assert (await run_saga(parent, env).done).unwrap() == "child failed: boom"

    @pytest.mark.asyncio
    async def test_cancel_child(self, env):
        def parent():
            child = yield fork(blocker)
            yield cancel(child)
            return child

        child = (await run_saga(parent, env).done).unwrap()

        assert child.is_cancelled()
        assert isinstance(child.done.result().err(), TaskCancelledError)
        assert child.error() is None

    @pytest.mark.asyncio
    async def test_cancel_self(self, env):
        reached = []

        def process():
            yield cancel()
            reached.append(True)

        task = run_saga(process, env)
        await task.done

        assert task.is_cancelled()
        assert reached == []

    @pytest.mark.asyncio
    async def test_cancelling_parent_cancels_attached_children(self, env, flush):
        def parent():
            child = yield fork(blocker)
            yield take("NEVER")
            return child

        task = run_saga(parent, env)
        await flush()
        task.cancel()
        outcome = await task.done

        assert isinstance(outcome, Err)
        assert task.is_cancelled()
        await flush()
        assert all(event[0] != "failed" for event in env.events)

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self, env, flush):
        task = run_saga(blocker, env)
        await flush()

        task.cancel()
        task.cancel()
        await task.done

        assert task.is_cancelled()
        assert repr(task) == "SagaTask('blocker', cancelled)"
