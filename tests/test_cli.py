from unittest.mock import ANY, patch

from manifest_viewer import cli


def test_parse_args_defaults():
    args = cli.parse_args([])
    assert args.config == cli.CONFIG_FILE_PATH
    assert args.url is None
    assert not args.headless
    assert not args.verbose


def test_parse_args_flags():
    args = cli.parse_args(["--config", "/tmp/x.conf", "--url", "http://a/list.txt", "--headless", "--verbose"])
    assert args.config == "/tmp/x.conf"
    assert args.url == "http://a/list.txt"
    assert args.headless
    assert args.verbose


def test_bad_configuration_exits_with_status_1(tmp_path):
    path = tmp_path / "viewer.conf"
    path.write_text("[settings]\npoll_interval_ms = 100\nfetch_timeout_ms = 500\n")
    with patch.object(cli, "setup_logging"):
        assert cli.main(["--config", str(path), "--headless"]) == 1


def test_headless_run_stops_cleanly_on_interrupt(tmp_path):
    real_stop = cli.PollScheduler.stop
    with patch.object(cli, "setup_logging"), \
            patch.object(cli.signal, "signal"), \
            patch.object(cli.time, "sleep", side_effect=KeyboardInterrupt), \
            patch.object(cli.PollScheduler, "stop", autospec=True, side_effect=real_stop) as stop:
        assert cli.main(["--config", str(tmp_path / "absent.conf"), "--headless"]) == 0
    stop.assert_called_once_with(ANY, wait=True)


def test_shutdown_waits_for_the_poll_worker_before_closing_images(tmp_path):
    order = []
    real_stop = cli.PollScheduler.stop
    real_close_all = cli.Gallery.close_all

    def recording_stop(self, *args, **kwargs):
        real_stop(self, *args, **kwargs)
        if kwargs.get("wait"):
            order.append(("joined", self._thread.is_alive()))

    def recording_close_all(self):
        order.append(("close_all",))
        return real_close_all(self)

    with patch.object(cli, "setup_logging"), \
            patch.object(cli.signal, "signal"), \
            patch.object(cli.time, "sleep", side_effect=KeyboardInterrupt), \
            patch.object(cli.PollScheduler, "stop", autospec=True, side_effect=recording_stop), \
            patch.object(cli.Gallery, "close_all", autospec=True, side_effect=recording_close_all):
        assert cli.main(["--config", str(tmp_path / "absent.conf"), "--headless"]) == 0

    assert order[0] == ("joined", False)
    assert order[-1] == ("close_all",)
