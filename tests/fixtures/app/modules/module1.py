def factory(exports, m2, m3):
    def func1():
        m3["log"].append("func1")
        m2["func2"]()

    def func11():
        m3["log"].append("func11")

    exports.func1 = func1
    exports.func11 = func11


define(["exports", "./module2", "./module3"], factory)
