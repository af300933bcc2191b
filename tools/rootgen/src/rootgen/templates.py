"""
Rust source fragments for the generated root task.

Fragments that vary with the build flags are built as lists of lines,
everything else is fixed text. All of it targets ``sel4_sys``.
"""

from __future__ import annotations

from typing import List

HEADER = """\
// NOTE: this file is generated by rootgen
// NOTE: Don't edit it here; your changes will be lost at the next build!
"""

USES = """
use core::intrinsics;
use core::panic::PanicInfo;
use core::mem;
use sel4_sys::*;
"""

ALLOCATOR = """
#[global_allocator]
static ALLOCATOR: wee_alloc::WeeAlloc = wee_alloc::WeeAlloc::INIT;
"""

ENTRY_HOOK = """
pub static mut BOOTINFO: *mut seL4_BootInfo = (0 as *mut seL4_BootInfo);
// Only the boot core runs the entry hook, before main, so this needs no
// atomic access.
static mut RUN_ONCE: bool = false;

#[no_mangle]
pub unsafe extern "C" fn __sel4_start_init_boot_info(
    bootinfo: *mut seL4_BootInfo,
) {
    if !RUN_ONCE {
        BOOTINFO = bootinfo;
        RUN_ONCE = true;
        seL4_SetUserData((*bootinfo).ipcBuffer as usize as seL4_Word);
    }
}
"""

TERMINATION_HOOK = """
#[lang = "termination"]
trait Termination {
    fn report(self) -> i32;
}

impl Termination for () {
    fn report(self) -> i32 {
        0
    }
}

#[lang = "start"]
#[no_mangle]
fn lang_start<T: Termination + 'static>(
    main: fn() -> T,
    _argc: isize,
    _argv: *const *const u8,
) -> isize {
    main();
    panic!("Root task should never return from main!");
}
"""

CONFIG_OPEN = """
// include the seL4 kernel configurations
#[allow(dead_code)]
#[allow(non_upper_case_globals)]
pub mod sel4_config {
"""

CONFIG_CLOSE = "}\n"

GET_UNTYPED = """
fn get_untyped(info: &seL4_BootInfo, size_bytes: usize) -> Option<seL4_CPtr> {
    let mut idx = 0;
    for i in info.untyped.start..info.untyped.end {
        if (1 << info.untypedList[idx].sizeBits) >= size_bytes {
            return Some(i);
        }
        idx += 1;
    }
    None
}

const CHILD_STACK_SIZE: usize = 4096;
static mut CHILD_STACK: [seL4_Word; CHILD_STACK_SIZE] = [0; CHILD_STACK_SIZE];
"""

MAIN_SETUP = """
fn main() {
    let bootinfo = unsafe { &*BOOTINFO };
    let cspace_cap = seL4_CapInitThreadCNode;
    let pd_cap = seL4_CapInitThreadVSpace;
    let tcb_cap = bootinfo.empty.start;
    let untyped = match get_untyped(bootinfo, 1 << seL4_TCBBits) {
        Some(cap) => cap,
        None => panic!("No untyped memory large enough for a TCB"),
    };
    let retype_err: seL4_Error = unsafe {
        seL4_Untyped_Retype(
            untyped,
            api_object_seL4_TCBObject.into(),
            seL4_TCBBits.into(),
            cspace_cap.into(),
            cspace_cap.into(),
            seL4_WordBits.into(),
            tcb_cap,
            1,
        )
    };

    assert!(retype_err == 0, "Failed to retype untyped memory");

    let tcb_err: seL4_Error = unsafe {
        seL4_TCB_Configure(
            tcb_cap,
            seL4_CapNull.into(),
            cspace_cap.into(),
            seL4_NilData.into(),
            pd_cap.into(),
            seL4_NilData.into(),
            0,
            0,
        )
    };

    assert!(tcb_err == 0, "Failed to configure TCB");

    let stack_base = unsafe { CHILD_STACK.as_ptr() as usize };
    let stack_top = stack_base + CHILD_STACK_SIZE * mem::size_of::<seL4_Word>();
    let mut regs: seL4_UserContext = unsafe { mem::zeroed() };
"""

# Status codes of the last three calls are dropped on purpose.
MAIN_START = """
    let _: u32 =
        unsafe { seL4_TCB_WriteRegisters(tcb_cap, 0, 0, 2, &mut regs) };
    let _: u32 = unsafe {
        seL4_TCB_SetPriority(tcb_cap, seL4_CapInitThreadTCB.into(), 255)
    };
    let _: u32 = unsafe { seL4_TCB_Resume(tcb_cap) };
    loop {
        unsafe {
            seL4_Yield();
        }
    }
}
"""


def feature_lines(alloc: bool) -> List[str]:
    out = ["#![no_std]"]
    if alloc:
        out.append("#![feature(alloc)]")
    out.append("#![feature(lang_items, core_intrinsics)]")
    out.append("#![feature(global_asm)]")
    if alloc:
        out.append("#![feature(global_allocator)]")
    out.append("#![feature(panic_info_message)]")
    return out


def crate_lines(module: str, *, alloc: bool, test: bool) -> List[str]:
    out = ["extern crate sel4_sys;"]
    if alloc:
        out.append("extern crate wee_alloc;")
        out.append("extern crate alloc;")
        if test:
            out.append("#[macro_use]")
            out.append("extern crate proptest;")
    out.append(f"extern crate {module};")
    return out


def _debug_out(body: List[str], indent: str = "    ") -> List[str]:
    out = [f"{indent}{{", f"{indent}    use core::fmt::Write;"]
    out.extend(f"{indent}    {line}" if line else "" for line in body)
    out.append(f"{indent}}}")
    return out


def _abort_notice(what: str) -> List[str]:
    return [
        "let _ = write!(",
        "    sel4_sys::DebugOutHandle,",
        f'    "----- aborting from {what} -----\\n"',
        ");",
    ]


def panic_hook_lines(debug: bool) -> List[str]:
    arg = "info" if debug else "_info"
    out = ["", "#[panic_handler]", "#[no_mangle]", f"fn panic({arg}: &PanicInfo) -> ! {{"]
    if debug:
        out.extend(
            _debug_out(
                [
                    "if let Some(loc) = info.location() {",
                    "    let _ = write!(",
                    "        sel4_sys::DebugOutHandle,",
                    '        "panic at {}:{}: ",',
                    "        loc.file(),",
                    "        loc.line()",
                    "    );",
                    "} else {",
                    '    let _ = write!(sel4_sys::DebugOutHandle, "panic: ");',
                    "}",
                    "",
                    "if let Some(fmt) = info.message() {",
                    "    let _ = sel4_sys::DebugOutHandle.write_fmt(*fmt);",
                    "}",
                    "let _ = sel4_sys::DebugOutHandle.write_char('\\n');",
                    "",
                    *_abort_notice("panic"),
                ]
            )
        )
    out.append("    unsafe { intrinsics::abort() }")
    out.append("}")
    return out


def eh_personality_hook_lines(debug: bool) -> List[str]:
    out = ["", '#[lang = "eh_personality"]', "#[no_mangle]", "pub fn eh_personality() -> ! {"]
    if debug:
        out.extend(_debug_out(_abort_notice("eh_personality")))
    out.append("    unsafe { intrinsics::abort() }")
    out.append("}")
    return out


def oom_hook_lines(debug: bool) -> List[str]:
    out = ["", '#[lang = "oom"]', "#[no_mangle]", 'pub extern "C" fn oom() -> ! {']
    if debug:
        out.extend(_debug_out(_abort_notice("out-of-memory")))
    out.append("    unsafe { intrinsics::abort() }")
    out.append("}")
    return out


def register_lines(module: str, pc_field: str, sp_field: str, *, test: bool) -> List[str]:
    entry = f"{module}::fel4_test::run" if test else f"{module}::run"
    return [
        f"    regs.{pc_field} = {entry} as seL4_Word;",
        f"    regs.{sp_field} = stack_top as seL4_Word;",
    ]
