from functools import reduce


def pipe(*funcs):
    """
    pipe(f, g, h)(x) == h(g(f(x)))
    Шаги отчёта читаются слева направо: отбор → агрегация → упаковка
    """
    return reduce(lambda f, g: lambda x: g(f(x)), funcs)
