import io
import unittest
from unittest import mock

from dict_client import FIRST_MATCH, ClientConfig, Database, DictConnectionError, DictionaryConnection, MatchingStrategy, ProtocolError
from dict_client.connection import parse_greeting


GREETING = "220 dict.example dictd 1.12 <auth.mime> <100.200@dict.example>"


def script(*lines):
    return io.StringIO("".join(line + "\r\n" for line in (GREETING, *lines)))


class GreetingTests(unittest.TestCase):
    def test_greeting_is_validated(self):
        conn = DictionaryConnection(script(), io.StringIO())
        self.assertEqual(conn.greeting.code, 220)
        self.assertEqual(conn.capabilities, ["auth", "mime"])
        self.assertEqual(conn.message_id, "<100.200@dict.example>")

    def test_wrong_greeting_code(self):
        rfile = io.StringIO("530 access denied\r\n")
        with self.assertRaises(DictConnectionError):
            DictionaryConnection(rfile, io.StringIO())
        self.assertTrue(rfile.closed)

    def test_no_greeting(self):
        with self.assertRaises(ConnectionError):
            DictionaryConnection(io.StringIO(""), io.StringIO())

    def test_unparseable_greeting(self):
        with self.assertRaises(DictConnectionError):
            DictionaryConnection(io.StringIO("hello there\r\n"), io.StringIO())

    def test_parse_greeting_variants(self):
        self.assertEqual(parse_greeting("ready"), ([], None))
        self.assertEqual(parse_greeting("ready <1@host>"), ([], "<1@host>"))
        self.assertEqual(parse_greeting("ready <> <1@host>"), ([], "<1@host>"))


class CommandTests(unittest.TestCase):
    def test_define_round_trip(self):
        wfile = io.StringIO()
        conn = DictionaryConnection(
            script(
                "150 2 definitions found",
                '151 cat wn "Cat"',
                "A feline.",
                ".",
                '151 cat wn2 "Cat2"',
                "Another.",
                ".",
                "250 ok",
            ),
            wfile,
        )
        definitions = conn.define("cat", Database("wn", "WordNet"))

        self.assertEqual(wfile.getvalue(), "DEFINE wn cat\r\n")
        self.assertEqual([d.database_name for d in definitions], ["wn", "wn2"])
        self.assertEqual([d.body for d in definitions], [["A feline."], ["Another."]])

    def test_define_defaults_to_all_databases(self):
        wfile = io.StringIO()
        conn = DictionaryConnection(script("552 no match"), wfile)
        self.assertEqual(conn.define("fjsdfnds"), [])
        self.assertEqual(wfile.getvalue(), "DEFINE * fjsdfnds\r\n")

    def test_no_match_leaves_stray_lines_unread(self):
        rfile = script("552 no match", "552 no match", "151 stray")
        conn = DictionaryConnection(rfile, io.StringIO())
        self.assertEqual(conn.define("nothing", "wn"), [])
        self.assertEqual(conn.define("nothing", "wn"), [])
        self.assertEqual(rfile.read(), "151 stray\r\n")

    def test_match_wire_text(self):
        wfile = io.StringIO()
        conn = DictionaryConnection(script("152 2 matches found", 'wn "cat"', 'wn "cat"', ".", "250 ok"), wfile)
        matches = conn.match("cat", MatchingStrategy("prefix", "Match prefixes"), "wn")
        self.assertEqual(matches, ["cat"])
        self.assertEqual(wfile.getvalue(), "MATCH wn prefix cat\r\n")

    def test_catalog_listings(self):
        wfile = io.StringIO()
        conn = DictionaryConnection(
            script(
                "110 1 database present",
                'wn "WordNet"',
                ".",
                "250 ok",
                "111 1 strategy available",
                'exact "Match headwords exactly"',
                ".",
                "250 ok",
            ),
            wfile,
        )
        self.assertEqual(conn.get_databases(), {"wn": Database("wn", "WordNet")})
        self.assertEqual(conn.get_strategies(), [MatchingStrategy("exact", "Match headwords exactly")])
        self.assertEqual(wfile.getvalue(), "SHOW DB\r\nSHOW STRAT\r\n")

    def test_info_separates_command_and_database(self):
        wfile = io.StringIO()
        conn = DictionaryConnection(script("550 invalid database, use SHOW DB for list"), wfile)
        self.assertEqual(conn.get_database_info("nope"), "")
        self.assertEqual(wfile.getvalue(), "SHOW INFO nope\r\n")

    def test_first_match_selector(self):
        wfile = io.StringIO()
        conn = DictionaryConnection(script("552 no match"), wfile)
        self.assertEqual(conn.define("cat", FIRST_MATCH), [])
        self.assertEqual(wfile.getvalue(), "DEFINE ! cat\r\n")

    def test_info_is_followed_directly_by_next_reply(self):
        wfile = io.StringIO()
        conn = DictionaryConnection(
            script("112 information follows", "About wn", ".", "110 1 database present", 'wn "WordNet"', ".", "250 ok"),
            wfile,
        )
        self.assertEqual(conn.get_database_info("wn"), "About wn")
        self.assertEqual(conn.get_databases(), {"wn": Database("wn", "WordNet")})
        self.assertEqual(wfile.getvalue(), "SHOW INFO wn\r\nSHOW DB\r\n")

    def test_info_final_status_option(self):
        conn = DictionaryConnection(
            script("112 information follows", "About wn", ".", "250 ok", "552 no match"),
            io.StringIO(),
            config=ClientConfig(info_final_status=True),
        )
        self.assertEqual(conn.get_database_info("wn"), "About wn")
        self.assertEqual(conn.define("cat"), [])

    def test_words_with_spaces_are_quoted(self):
        wfile = io.StringIO()
        conn = DictionaryConnection(script("552 no match"), wfile)
        conn.define("ice cream", "!")
        self.assertEqual(wfile.getvalue(), 'DEFINE ! "ice cream"\r\n')

    def test_custom_line_terminator(self):
        wfile = io.StringIO()
        conn = DictionaryConnection(script("552 no match"), wfile, config=ClientConfig(line_terminator="\n"))
        conn.define("cat")
        self.assertEqual(wfile.getvalue(), "DEFINE * cat\n")

    def test_strict_mode(self):
        conn = DictionaryConnection(script("550 invalid database"), io.StringIO(), config=ClientConfig(strict=True))
        with self.assertRaises(ProtocolError):
            conn.define("cat", "nope")


class SessionStateTests(unittest.TestCase):
    def test_protocol_error_makes_session_unusable(self):
        wfile = io.StringIO()
        conn = DictionaryConnection(script("150 1 definitions found", "500 oops", "552 no match"), wfile)
        with self.assertRaises(ProtocolError):
            conn.define("cat")
        with self.assertRaisesRegex(ProtocolError, "unusable"):
            conn.define("dog")
        self.assertEqual(wfile.getvalue(), "DEFINE * cat\r\n")

    def test_reentrant_command_is_rejected(self):
        wfile = io.StringIO()
        conn = DictionaryConnection(script("552 no match"), wfile)
        with conn._exchange():
            with self.assertRaises(RuntimeError):
                conn.define("cat")
        self.assertEqual(wfile.getvalue(), "")
        self.assertEqual(conn.define("cat"), [])

    def test_send_failure_is_protocol_error(self):
        wfile = mock.Mock()
        wfile.write.side_effect = BrokenPipeError("broken pipe")
        conn = DictionaryConnection(script(), wfile)
        with self.assertRaises(ProtocolError):
            conn.get_databases()

    def test_commands_after_close(self):
        conn = DictionaryConnection(script(), io.StringIO())
        conn.close()
        self.assertTrue(conn.closed)
        with self.assertRaisesRegex(RuntimeError, "not connected"):
            conn.get_strategies()


class CloseTests(unittest.TestCase):
    def test_close_sends_quit_then_releases_in_order(self):
        calls = []
        rfile = mock.Mock()
        rfile.readline.return_value = GREETING + "\r\n"
        rfile.close.side_effect = lambda: calls.append("rfile")
        wfile = mock.Mock()
        wfile.write.side_effect = lambda line: calls.append(line)
        wfile.close.side_effect = lambda: calls.append("wfile")
        sock = mock.Mock()
        sock.close.side_effect = lambda: calls.append("sock")

        conn = DictionaryConnection(rfile, wfile, sock)
        conn.close()

        self.assertEqual(calls, ["QUIT\r\n", "rfile", "wfile", "sock"])

    def test_close_never_raises(self):
        rfile = mock.Mock()
        rfile.readline.return_value = "220 ready\r\n"
        rfile.close.side_effect = OSError("bad descriptor")
        wfile = mock.Mock()
        wfile.write.side_effect = BrokenPipeError("broken pipe")
        wfile.close.side_effect = OSError("bad descriptor")
        sock = mock.Mock()
        sock.close.side_effect = OSError("already closed")

        conn = DictionaryConnection(rfile, wfile, sock)
        conn.close()
        conn.close()

        sock.close.assert_called_once_with()
        self.assertTrue(conn.closed)

    def test_close_inside_a_command_does_not_deadlock(self):
        wfile = mock.Mock()
        sock = mock.Mock()
        conn = DictionaryConnection(script(), wfile, sock)
        with conn._exchange():
            conn.close()
        self.assertTrue(conn.closed)
        sock.close.assert_called_once_with()
        wfile.write.assert_not_called()
        with self.assertRaisesRegex(RuntimeError, "not connected"):
            conn.define("cat")

    def test_context_manager_closes(self):
        with DictionaryConnection(script(), io.StringIO()) as conn:
            pass
        self.assertTrue(conn.closed)


if __name__ == "__main__":
    unittest.main()
