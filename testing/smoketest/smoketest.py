from luaserialize import LuaTable, dumps


def main() -> None:
    msg = "Don't let the smoke out!"
    table = LuaTable(msg=msg)
    table["self"] = table
    expected = b"string 3\nmsg\nstring %d\n%s\nstring 4\nself\nref 0\n" % (
        len(msg),
        msg.encode(),
    )
    if dumps(table) != b"table 2\n" + expected:
        raise AssertionError("Smoke test failed")
    print(msg)


if __name__ == "__main__":
    main()
