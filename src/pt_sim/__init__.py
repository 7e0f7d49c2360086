"""pt-sim — a single-level page table simulator.

A small machine with a fixed physical memory, a first-fit page
allocator, one flat page table per process, and an MMU that translates
virtual addresses through it.
"""
