"""
Value Model Tests for asmvm.

Addition, subtraction, wrapping, raw text and display forms of the
four value variants.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from asmvm.address import Register, RegisterAddress, StackSlot
from asmvm.errors import IncompatibleTypes, SubtractionError
from asmvm.values import (
    UNINITIALIZED, Integer, Pointer, Text, Uninitialized, add, kind_name,
    raw_text, sub, wrap64,
)


class TestAddition:
    def test_integers(self):
        assert add(Integer(5), Integer(5)) == Integer(10)
        assert add(Integer(-3), Integer(1)) == Integer(-2)

    def test_integer_overflow_wraps(self):
        max_int = 2 ** 63 - 1
        assert add(Integer(max_int), Integer(1)) == Integer(-(2 ** 63))

    def test_pointer_plus_integer(self):
        assert add(Pointer(StackSlot(2)), Integer(3)) == Pointer(StackSlot(5))

    def test_pointer_plus_negative_integer(self):
        assert add(Pointer(StackSlot(2)), Integer(-2)) == Pointer(StackSlot(0))
        with pytest.raises(IncompatibleTypes):
            add(Pointer(StackSlot(2)), Integer(-3))

    def test_pointer_plus_pointer(self):
        assert add(Pointer(StackSlot(2)), Pointer(StackSlot(4))) == Pointer(StackSlot(6))

    def test_register_pointer_rejected(self):
        reg = Pointer(RegisterAddress(Register.RAX))
        with pytest.raises(IncompatibleTypes):
            add(reg, Integer(1))
        with pytest.raises(IncompatibleTypes):
            add(Pointer(StackSlot(1)), reg)

    def test_concatenation_fallback(self):
        assert add(Text("a"), Text("b")) == Text("ab")
        assert add(Text("n="), Integer(4)) == Text("n=4")
        assert add(Integer(4), Text("!")) == Text("4!")

    def test_uninitialized_contributes_empty_text(self):
        assert add(UNINITIALIZED, Integer(7)) == Text("7")
        assert add(UNINITIALIZED, UNINITIALIZED) == Text("")


class TestSubtraction:
    def test_integers(self):
        assert sub(Integer(10), Integer(4)) == Integer(6)

    def test_integer_underflow_wraps(self):
        assert sub(Integer(-(2 ** 63)), Integer(1)) == Integer(2 ** 63 - 1)

    def test_slot_distance(self):
        assert sub(Pointer(StackSlot(7)), Pointer(StackSlot(3))) == Integer(4)

    @pytest.mark.parametrize("left,right", [
        (Text("a"), Integer(1)),
        (Integer(1), UNINITIALIZED),
        (UNINITIALIZED, UNINITIALIZED),
        (Pointer(StackSlot(1)), Integer(1)),
        (Pointer(RegisterAddress(Register.RBX)), Pointer(StackSlot(1))),
    ])
    def test_illegal_combinations(self, left, right):
        with pytest.raises(SubtractionError) as exc:
            sub(left, right)
        assert str(left) in str(exc.value)
        assert str(right) in str(exc.value)


class TestFormatting:
    def test_wrap64(self):
        assert wrap64(2 ** 64) == 0
        assert wrap64(2 ** 63) == -(2 ** 63)
        assert wrap64(-1) == -1

    def test_raw_text(self):
        assert raw_text(Integer(-5)) == "-5"
        assert raw_text(Text("x y")) == "x y"
        assert raw_text(Pointer(StackSlot(10))) == "0x0A"
        assert raw_text(Pointer(RegisterAddress(Register.RCX))) == "rcx"
        assert raw_text(UNINITIALIZED) == ""

    def test_display(self):
        assert str(Integer(3)) == "Integer '3'"
        assert str(Text("hi")) == "String 'hi'"
        assert str(Pointer(StackSlot(3))) == "Pointer 0x03"
        assert str(UNINITIALIZED) == "Uninitialized"

    def test_kind_names(self):
        assert kind_name(Integer(0)) == "Integer"
        assert kind_name(Text("")) == "String"
        assert kind_name(Pointer(StackSlot(0))) == "Pointer"
        assert kind_name(Uninitialized()) == "Uninitialized"
