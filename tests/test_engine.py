"""
Execution + Control-Flow Engine Tests for asmvm.

The two halves of instruction handling are tested separately: the
engine's data effect against a bare MachineState, and the control
transitions against a Program + MachineState with frames set up by hand.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from asmvm.address import Register, RegisterAddress, StackSlot
from asmvm.control import ControlFlow, RunState
from asmvm.engine import ExecutionEngine
from asmvm.errors import (
    FrameError, IncompatibleTypes, LabelNotFoundError, OperationError, SubtractionError,
    UnknownSyscallError, WrongTypeError,
)
from asmvm.instructions import Syscall
from asmvm.memory import CallFrame, MachineState
from asmvm.parser import load_program, parse_line
from asmvm.values import UNINITIALIZED, Integer, Pointer, Text

RAX = RegisterAddress(Register.RAX)
RBX = RegisterAddress(Register.RBX)


def _engine(stack_size=64):
    state = MachineState(stack_size)
    return ExecutionEngine(state), state


def _run_lines(engine, *lines):
    for pc, line in enumerate(lines):
        engine.execute(parse_line(line), pc)


# ═══════════════════════════════════════════════
# Data effects
# ═══════════════════════════════════════════════

class TestDataEffects:
    def test_mov_and_add(self):
        engine, state = _engine()
        _run_lines(engine, "mov rax 5", "mov rbx rax", "add rax rax rbx")
        assert state.regs.rax == Integer(10)
        assert state.regs.rbx == Integer(5)

    def test_sub(self):
        engine, state = _engine()
        _run_lines(engine, "mov sp[1] 10", "sub sp[2] sp[1] 3")
        assert state.stack[2] == Integer(7)

    def test_sub_type_error(self):
        engine, state = _engine()
        with pytest.raises(SubtractionError):
            _run_lines(engine, 'sub rax "a" 1')

    def test_add_register_pointer_error(self):
        engine, state = _engine()
        with pytest.raises(IncompatibleTypes):
            _run_lines(engine, "lea rbx rcx", "add rax rbx 1")

    def test_lea_stores_address_not_value(self):
        engine, state = _engine()
        _run_lines(engine, "mov sp[4] 123", "lea rax sp[4]")
        assert state.regs.rax == Pointer(StackSlot(4))

    def test_pointer_walk(self):
        engine, state = _engine()
        _run_lines(engine,
                   "lea rcx sp[1]",
                   "mov [rcx] 11",
                   "add rcx rcx 1",
                   "mov [rcx] 22")
        assert state.stack[1] == Integer(11)
        assert state.stack[2] == Integer(22)

    def test_string_concatenation(self):
        engine, state = _engine()
        _run_lines(engine, 'mov rax "count: "', "add rax rax 3")
        assert state.regs.rax == Text("count: 3")

    def test_labels_return_leave_have_no_data_effect(self):
        engine, state = _engine()
        _run_lines(engine, "mov rax 1", "here:", "ret rax", "leave")
        assert state.regs.rax == Integer(1)
        assert state.frames == []


class TestPrintf:
    def test_substitution(self):
        engine, state = _engine()
        _run_lines(engine, 'mov rax "{} items"', "mov rbx 3", "syscall printf")
        assert engine.output_lines == ["3 items"]

    def test_only_first_marker_replaced(self):
        engine, state = _engine()
        _run_lines(engine, 'mov rax "{} and {}"', 'mov rbx "x"', "syscall printf")
        assert engine.output_lines == ["x and {}"]

    def test_no_marker(self):
        engine, state = _engine()
        _run_lines(engine, 'mov rax "plain"', "syscall printf")
        assert engine.output_lines == ["plain"]

    def test_uninitialized_argument_is_empty(self):
        engine, state = _engine()
        _run_lines(engine, 'mov rax "[{}]"', "syscall printf")
        assert engine.output_lines == ["[]"]

    def test_output_callback(self):
        seen = []
        state = MachineState()
        engine = ExecutionEngine(state, output=seen.append)
        _run_lines(engine, 'mov rax "hi"', "syscall printf")
        assert seen == ["hi"]

    def test_template_must_be_text(self):
        engine, state = _engine()
        with pytest.raises(WrongTypeError):
            _run_lines(engine, "mov rax 3", "syscall printf")

    def test_unknown_syscall_is_operation_error(self):
        engine, state = _engine()
        with pytest.raises(UnknownSyscallError) as exc:
            engine.execute(Syscall("exit"), 0)
        assert isinstance(exc.value, OperationError)
        assert "exit" in str(exc.value)


class TestFramePush:
    def test_call_with_return(self):
        engine, state = _engine()
        state.regs.rcx = Integer(7)
        engine.execute(parse_line("call rax f"), 4)
        frame = state.frames[-1]
        assert frame.return_pc == 5
        assert frame.return_slot == RAX
        assert not frame.entered_via_jump
        assert frame.saved_registers == (UNINITIALIZED, UNINITIALIZED, Integer(7))

    def test_void_call_and_jump_have_no_slot(self):
        engine, state = _engine()
        engine.execute(parse_line("call f"), 0)
        engine.execute(parse_line("jmp f"), 1)
        call_frame, jump_frame = state.frames
        assert call_frame.return_slot is None and not call_frame.entered_via_jump
        assert jump_frame.return_slot is None and jump_frame.entered_via_jump


# ═══════════════════════════════════════════════
# Control transitions
# ═══════════════════════════════════════════════

class TestControlFlow:
    PROGRAM = load_program("call f\nleave\nf:\nret 1")

    def _control(self):
        state = MachineState()
        return ControlFlow(self.PROGRAM, state), state

    def _frame(self, slot=None, via_jump=False, regs=None):
        regs = regs or (Integer(1), Integer(2), Integer(3))
        return CallFrame(return_pc=1, entered_via_jump=via_jump,
                         return_slot=slot, saved_registers=regs)

    def test_plain_instruction_advances(self):
        control, state = self._control()
        t = control.transition(parse_line("mov rax 1"), 0)
        assert t.state is RunState.RUNNING
        assert t.next_pc is None

    def test_call_redirects_to_label(self):
        control, state = self._control()
        t = control.transition(parse_line("call f"), 0)
        assert t.next_pc == 2

    def test_missing_label(self):
        control, state = self._control()
        with pytest.raises(LabelNotFoundError):
            control.transition(parse_line("jmp nowhere"), 0)

    def test_top_level_return_halts_with_value(self):
        control, state = self._control()
        t = control.transition(parse_line('ret "done"'), 3)
        assert t.state is RunState.HALTED
        assert t.value == Text("done")

    def test_top_level_leave_halts_with_zero(self):
        control, state = self._control()
        t = control.transition(parse_line("leave"), 1)
        assert t.state is RunState.HALTED
        assert t.value == Integer(0)

    def test_return_restores_then_writes_slot(self):
        control, state = self._control()
        state.push_frame(self._frame(slot=RAX))
        state.regs.rax = Text("callee")
        t = control.transition(parse_line("ret 42"), 3)
        assert t.state is RunState.RETURNED
        assert t.next_pc == 1
        assert state.regs.rax == Integer(42)
        assert state.regs.rbx == Integer(2)

    def test_return_through_jump_keeps_registers(self):
        control, state = self._control()
        state.push_frame(self._frame(via_jump=True))
        state.regs.rbx = Integer(99)
        control.transition(parse_line("ret 0"), 3)
        assert state.regs.rbx == Integer(99)

    def test_return_into_void_frame_discards_value(self):
        control, state = self._control()
        state.push_frame(self._frame())
        t = control.transition(parse_line("ret 5"), 3)
        assert t.next_pc == 1
        assert state.regs.rax == Integer(1)

    def test_leave_restores_registers(self):
        control, state = self._control()
        state.push_frame(self._frame())
        state.regs.rax = Integer(50)
        t = control.transition(parse_line("leave"), 3)
        assert t.state is RunState.RETURNED
        assert state.regs.rax == Integer(1)

    def test_leave_rejects_value_frame(self):
        control, state = self._control()
        state.push_frame(self._frame(slot=RBX))
        with pytest.raises(FrameError):
            control.transition(parse_line("leave"), 3)
